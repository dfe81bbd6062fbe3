"""
Settings consumed by the frame source, plus duration parsing for the CLI.

Durations accept plain seconds ("2.5") or clock notation:
    mm:ss[.fff]   hh:mm:ss[.fff]   d:hh:mm:ss[.fff]   d.hh:mm:ss[.fff]
"""

import math
import re
from dataclasses import dataclass

from framesplit.encoding import ImageFormat
from framesplit.errors import ConfigurationError

DEFAULT_STEP_SEC = 0.04

_CLOCK = re.compile(
    r"""^
    (?:(?P<days>\d+)[.:](?=\d+:\d+:))?   # optional days, only before hh:mm:ss
    (?:(?P<hours>\d+):(?=\d+:))?
    (?P<minutes>\d+):
    (?P<seconds>\d+(?:\.\d*)?)
    $""",
    re.VERBOSE,
)


def parse_duration(text: str) -> float:
    """Duration string -> seconds (float). Raises ConfigurationError."""
    value = text.strip()
    if not value:
        raise ConfigurationError("empty duration")

    if ":" not in value:
        try:
            sec = float(value)
        except ValueError:
            raise ConfigurationError(f"cannot parse duration {text!r}") from None
        if not math.isfinite(sec) or sec < 0:
            raise ConfigurationError(f"duration must be a finite value >= 0: {text!r}")
        return sec

    m = _CLOCK.match(value)
    if m is None:
        raise ConfigurationError(f"cannot parse duration {text!r}")

    days = int(m["days"] or 0)
    hours = int(m["hours"] or 0)
    minutes = int(m["minutes"])
    seconds = float(m["seconds"])

    if seconds >= 60:
        raise ConfigurationError(f"seconds must be < 60: {text!r}")
    if m["hours"] is not None and minutes >= 60:
        raise ConfigurationError(f"minutes must be < 60: {text!r}")
    if m["days"] is not None and hours >= 24:
        raise ConfigurationError(f"hours must be < 24: {text!r}")

    return ((days * 24 + hours) * 60 + minutes) * 60 + seconds


@dataclass(frozen=True)
class SplitConfig:
    image_format: ImageFormat = ImageFormat.BMP
    rotate: bool = False
    grayscale: bool = False
    start_sec: float = 0.0
    end_sec: float = math.inf
    step_sec: float = DEFAULT_STEP_SEC

    def __post_init__(self) -> None:
        if not isinstance(self.image_format, ImageFormat):
            raise ConfigurationError(f"image_format must be an ImageFormat, got {self.image_format!r}")
        if not (math.isfinite(self.start_sec) and self.start_sec >= 0):
            raise ConfigurationError(f"start must be a finite value >= 0, got {self.start_sec}")
        if math.isnan(self.end_sec):
            raise ConfigurationError("end must be a number")
        if not (math.isfinite(self.step_sec) and self.step_sec > 0):
            raise ConfigurationError(f"step must be > 0 seconds, got {self.step_sec}")
