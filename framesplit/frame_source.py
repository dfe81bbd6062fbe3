"""
Frame source: single entry point for opening a video file and pulling
sampled, encoded frames one by one.

Responsibilities:
- probe video metadata and build the sampling window
- own the decoder session (open / close)
- per frame: sample -> optional flip -> optional grayscale -> encode
- keep the cursor and the Ready / Exhausted state consistent
"""

import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional

from framesplit.config import SplitConfig
from framesplit.decoder import DecoderHandle, FfmpegDecoder, StreamMetadata
from framesplit.encoding import encode
from framesplit.errors import FrameSplitError
from framesplit.grayscale import GrayscaleConverter
from framesplit.pixels import rotate_flip
from framesplit.sampling import SamplingWindow

log = logging.getLogger(__name__)


class FrameSourceState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    EXHAUSTED = "exhausted"


class FrameSource(Iterator[bytes]):
    def __init__(
        self,
        decoder: Optional[FfmpegDecoder] = None,
        converter: Optional[GrayscaleConverter] = None,
    ) -> None:
        self._decoder = decoder or FfmpegDecoder()
        self._converter = converter or GrayscaleConverter()

        self._path: Optional[Path] = None
        self._config: Optional[SplitConfig] = None
        self._meta: Optional[StreamMetadata] = None
        self._window: Optional[SamplingWindow] = None
        self._handle: Optional[DecoderHandle] = None

        self._cursor = 0
        # sampling session is stateful, one frame at a time
        self._lock = threading.Lock()

    # ---------------------------------------------------------------------

    @property
    def state(self) -> FrameSourceState:
        if self._window is None:
            return FrameSourceState.UNINITIALIZED
        if self._cursor >= self._window.frame_count:
            return FrameSourceState.EXHAUSTED
        return FrameSourceState.READY

    @property
    def metadata(self) -> Optional[StreamMetadata]:
        return self._meta

    @property
    def window(self) -> Optional[SamplingWindow]:
        return self._window

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def frame_count(self) -> int:
        return self._require_window().frame_count

    def _require_window(self) -> SamplingWindow:
        if self._window is None:
            raise RuntimeError("frame source is not open")
        return self._window

    # ---------------------------------------------------------------------

    def open(self, file_path: str | Path, config: SplitConfig) -> "FrameSource":
        path = Path(file_path)
        log.debug(f"Opening the video file {path}...")

        meta = self._decoder.probe(path)
        window = SamplingWindow(
            start_sec=config.start_sec,
            end_sec=config.end_sec,
            step_sec=config.step_sec,
            stream_length_sec=meta.stream_length_sec,
        )
        handle = self._decoder.open_for_sampling(path, meta.stream_index)

        self.close()
        self._path = path
        self._config = config
        self._meta = meta
        self._window = window
        self._handle = handle
        self._cursor = 0

        log.info(
            f"{path.name}: {meta.width}x{meta.height} stream #{meta.stream_index} "
            f"({meta.stream_length_sec:.2f}s) -> {window.frame_count} frames "
            f"[{window.start_sec}s..{window.effective_end_sec}s step {window.step_sec}s]"
        )
        return self

    def is_exhausted(self) -> bool:
        return self._cursor >= self._require_window().frame_count

    def reset(self) -> bool:
        """
        Rewinds only an exhausted source; a ready one keeps its cursor.
        Returns True when frames are available afterwards.
        """
        self._require_window()

        if self._handle is None or self._handle.closed:
            self._handle = self._decoder.open_for_sampling(self._path, self._meta.stream_index)

        if not self.is_exhausted():
            return True

        self._cursor = 0
        return not self.is_exhausted()

    def next_frame(self) -> Optional[bytes]:
        """
        Encoded bytes of the next sampled frame, or None at end of stream.
        DecodeError / EncodeError exhaust the source and propagate.
        """
        window = self._require_window()

        with self._lock:
            if self._cursor >= window.frame_count:
                return None

            if self._handle is None or self._handle.closed:
                raise RuntimeError("decoder session is closed, call reset() to reopen")

            index = self._cursor
            position = window.position_of(index)
            meta = self._meta
            config = self._config

            try:
                with self._decoder.sample_at(
                    self._handle, position, meta.width, meta.height, meta.buffer_size
                ) as buf:
                    if config.rotate:
                        rotate_flip(buf)

                    if config.grayscale:
                        with self._converter.convert(buf) as gray:
                            data = encode(gray, config.image_format)
                    else:
                        data = encode(buf, config.image_format)

            except FrameSplitError as e:
                log.error(f"{self._path.name}: frame {index} at {position:.3f}s failed: {e}")
                self._cursor = window.frame_count
                raise

            self._cursor += 1
            log.debug(f"{self._path.name}: frame {index} at {position:.3f}s -> {len(data)} bytes")
            return data

    # ---------------------------------------------------------------------

    def __iter__(self) -> "FrameSource":
        return self

    def __next__(self) -> bytes:
        data = self.next_frame()
        if data is None:
            raise StopIteration
        return data

    # ---------------------------------------------------------------------

    def close(self) -> None:
        if self._handle is None:
            return

        handle, self._handle = self._handle, None
        handle.close()
        log.debug(f"{self._path.name}: frame source closed")

    def __enter__(self) -> "FrameSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False


# =============================================================================
# Public API
# =============================================================================


def open_source(
    video_path: str | Path,
    config: Optional[SplitConfig] = None,
    **kwargs,
) -> FrameSource:
    """
    Open a frame source. kwargs are passed to FrameSource
    (decoder=..., converter=...).
    """
    return FrameSource(**kwargs).open(video_path, config or SplitConfig())
