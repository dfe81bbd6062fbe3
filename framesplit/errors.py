"""
Error taxonomy for the frame splitter.

Everything raised on purpose derives from FrameSplitError, so CLI front ends
can catch one type and exit non-zero.
"""


class FrameSplitError(Exception):
    pass


class ConfigurationError(FrameSplitError, ValueError):
    """Non-positive step, negative start or an unparsable duration."""


class NoVideoStreamError(FrameSplitError, LookupError):
    """The probed file has no stream of video type."""


class DecodeError(FrameSplitError, RuntimeError):
    """ffprobe / ffmpeg failed, or no frame exists at the requested time."""


class EncodeError(FrameSplitError, RuntimeError):
    """Unknown image format or the image encoder failed."""
