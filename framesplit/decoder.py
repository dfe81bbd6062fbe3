"""
Video decoder bridge over ffprobe / ffmpeg.

Responsibilities:
- probe stream metadata (ffprobe), pick the first video stream
- bind a sampling session to that stream
- extract one RGB24 frame at a given time into a scoped PixelBuffer
"""

import json
import logging
import math
import subprocess
from pathlib import Path
from typing import NamedTuple, Optional

from framesplit.errors import DecodeError, NoVideoStreamError
from framesplit.pixels import BYTES_PER_PIXEL, PixelBuffer

log = logging.getLogger(__name__)


# =============================================================================
# Public types
# =============================================================================


class StreamMetadata(NamedTuple):
    width: int
    height: int
    buffer_size: int
    stream_index: int
    stream_length_sec: float


class DecoderHandle:
    """Sampling session bound to one stream of one file."""

    def __init__(self, path: Path, stream_index: int) -> None:
        self.path = path
        self.stream_index = stream_index
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            log.debug(f"{self.path.name}: session on stream {self.stream_index} closed")

    def __enter__(self) -> "DecoderHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False


# Window searched backwards for the frame still on screen when a position
# falls between the last frame's timestamp and the end of the stream.
LAST_FRAME_LOOKBACK_SEC = 1.0


# =============================================================================
# Subprocess helpers
# =============================================================================


def _run(cmd: list[str]) -> tuple[int, str, str]:
    try:
        p = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except OSError as e:
        raise DecodeError(f"cannot run {cmd[0]}: {e}") from e
    return p.returncode, p.stdout.strip(), p.stderr.strip()


def _run_raw(cmd: list[str]) -> tuple[int, bytes, str]:
    try:
        p = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as e:
        raise DecodeError(f"cannot run {cmd[0]}: {e}") from e
    return p.returncode, p.stdout, p.stderr.decode("utf-8", errors="replace").strip()


def _seconds(value) -> Optional[float]:
    # ffprobe reports "N/A" for unknown durations
    try:
        sec = float(value)
    except (TypeError, ValueError):
        return None
    return sec if math.isfinite(sec) and sec >= 0 else None


def check_ffmpeg() -> bool:
    """Checks that ffmpeg and ffprobe can be executed."""
    for tool in ("ffmpeg", "ffprobe"):
        try:
            rc, _, _ = _run([tool, "-version"])
        except DecodeError:
            return False
        if rc != 0:
            return False
    return True


# =============================================================================
# Decoder
# =============================================================================


class FfmpegDecoder:
    def probe(self, file_path: str | Path) -> StreamMetadata:
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"video file not found: {path}")

        cmd = [
            "ffprobe",
            "-v", "error",
            "-show_entries", "stream=index,codec_type,width,height,duration",
            "-show_entries", "format=duration",
            "-of", "json",
            str(path),
        ]

        rc, out, err = _run(cmd)
        if rc != 0:
            raise DecodeError(f"ffprobe failed for {path.name}: {err or 'unknown error'}")

        try:
            info = json.loads(out)
            streams = sorted(info.get("streams", []), key=lambda s: int(s["index"]))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise DecodeError(f"cannot parse ffprobe output for {path.name}: {e}") from e

        stream = next((s for s in streams if s.get("codec_type") == "video"), None)
        if stream is None:
            raise NoVideoStreamError(f"video stream was not found: {path}")

        width = int(stream.get("width", 0))
        height = int(stream.get("height", 0))
        if width <= 0 or height <= 0:
            raise DecodeError(f"invalid frame size {width}x{height} in {path.name}")

        length = _seconds(stream.get("duration"))
        if length is None:
            length = _seconds(info.get("format", {}).get("duration"))
        if length is None:
            log.warning(f"{path.name}: duration unknown, treating stream as empty")
            length = 0.0

        stream_index = int(stream["index"])

        # Two-phase query: ask the frame primitive for its size without a destination.
        with self.open_for_sampling(path, stream_index) as handle:
            buffer_size = self.frame_bytes(handle, 0.0, None, width, height)

        meta = StreamMetadata(
            width=width,
            height=height,
            buffer_size=buffer_size,
            stream_index=stream_index,
            stream_length_sec=length,
        )
        log.debug(f"{path.name}: {meta}")
        return meta

    def open_for_sampling(self, file_path: str | Path, stream_index: int) -> DecoderHandle:
        return DecoderHandle(Path(file_path), stream_index)

    def frame_bytes(
        self,
        handle: DecoderHandle,
        position_sec: float,
        dest: Optional[bytearray],
        width: int,
        height: int,
    ) -> int:
        """
        Frame extraction primitive.

        dest is None -> returns the byte count one frame needs, nothing is decoded.
        Otherwise decodes the first frame at or after position_sec into dest
        and returns the number of bytes written. Past the last frame but within
        LAST_FRAME_LOOKBACK_SEC of it, the last frame is used instead.
        """
        frame_size = width * height * BYTES_PER_PIXEL
        if dest is None:
            return frame_size

        if handle.closed:
            raise DecodeError(f"decoder session for {handle.path.name} is closed")

        raw = self._decode(handle, position_sec, ["-frames:v", "1"], width, height)

        if len(raw) < frame_size and position_sec > 0:
            # Position lies after the last frame's timestamp: take the frame still
            # on screen, i.e. the last one within LAST_FRAME_LOOKBACK_SEC before it.
            start = max(0.0, position_sec - LAST_FRAME_LOOKBACK_SEC)
            tail = self._decode(handle, start, ["-t", f"{position_sec - start:.6f}"], width, height)
            whole = len(tail) // frame_size
            if whole:
                raw = tail[(whole - 1) * frame_size:whole * frame_size]
                log.debug(f"{handle.path.name}: {position_sec:.3f}s past last frame, reusing previous frame")

        n = min(len(raw), len(dest), frame_size)
        dest[:n] = raw[:n]
        return n

    def _decode(
        self,
        handle: DecoderHandle,
        start_sec: float,
        limit: list[str],
        width: int,
        height: int,
    ) -> bytes:
        cmd = [
            "ffmpeg",
            "-loglevel", "error",
            "-noautorotate",
            "-ss", f"{start_sec:.6f}",
            "-i", str(handle.path),
            "-map", f"0:{handle.stream_index}",
            *limit,
            "-s", f"{width}x{height}",
            "-f", "rawvideo",
            "-pix_fmt", "rgb24",
            "-",
        ]

        rc, raw, err = _run_raw(cmd)
        if rc != 0:
            raise DecodeError(
                f"ffmpeg failed at {start_sec:.3f}s in {handle.path.name}: {err or rc}"
            )
        return raw

    def sample_at(
        self,
        handle: DecoderHandle,
        position_sec: float,
        width: int,
        height: int,
        buffer_size: Optional[int] = None,
    ) -> PixelBuffer:
        """
        One frame at the first timestamp >= position_sec, or the last frame
        when position_sec falls just after it.
        The returned buffer must be released by the caller (use `with`).
        """
        buffer = PixelBuffer.allocate(width, height, size=buffer_size)
        try:
            written = self.frame_bytes(handle, position_sec, buffer.data, width, height)
            expected = width * height * BYTES_PER_PIXEL
            if written < expected:
                raise DecodeError(
                    f"no frame at {position_sec:.3f}s in {handle.path.name} "
                    f"(got {written} of {expected} bytes)"
                )
        except BaseException:
            buffer.release()
            raise

        return buffer
