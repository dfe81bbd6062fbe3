"""Pytest configuration and shared fakes for framesplit tests."""

import threading
import time
from pathlib import Path

import numpy as np
import pytest

from framesplit.decoder import DecoderHandle, StreamMetadata
from framesplit.errors import DecodeError
from framesplit.pixels import PixelBuffer


def pattern(width: int, height: int) -> np.ndarray:
    """Deterministic RGB image: R follows the row, G the column, B both."""
    y, x = np.mgrid[0:height, 0:width]
    img = np.empty((height, width, 3), dtype=np.uint8)
    img[..., 0] = (y * 37) % 256
    img[..., 1] = (x * 53) % 256
    img[..., 2] = (x + y * 7) % 256
    return img


class FakeDecoder:
    """In-memory stand-in for FfmpegDecoder."""

    def __init__(
        self,
        width: int = 8,
        height: int = 6,
        stream_length_sec: float = 10.0,
        stream_index: int = 1,
        fail_at=(),
        delay: float = 0.0,
    ):
        self.meta = StreamMetadata(
            width=width,
            height=height,
            buffer_size=width * height * 3,
            stream_index=stream_index,
            stream_length_sec=stream_length_sec,
        )
        self.fail_at = set(fail_at)
        self.delay = delay

        self.probed = []
        self.handles = []
        self.positions = []
        self.buffers = []

        self._active = 0
        self._guard = threading.Lock()
        self.overlapped = False

    def probe(self, file_path):
        self.probed.append(Path(file_path))
        return self.meta

    def open_for_sampling(self, file_path, stream_index):
        handle = DecoderHandle(Path(file_path), stream_index)
        self.handles.append(handle)
        return handle

    def sample_at(self, handle, position_sec, width, height, buffer_size=None):
        with self._guard:
            self._active += 1
            if self._active > 1:
                self.overlapped = True
        try:
            if self.delay:
                time.sleep(self.delay)
            if handle.closed:
                raise DecodeError("session closed")
            self.positions.append(position_sec)
            if position_sec in self.fail_at:
                raise DecodeError(f"no frame at {position_sec}")

            buf = PixelBuffer(bytearray(pattern(width, height).tobytes()), width, height)
            self.buffers.append(buf)
            return buf
        finally:
            with self._guard:
                self._active -= 1


@pytest.fixture
def fake_decoder():
    return FakeDecoder()


@pytest.fixture
def video_file(tmp_path):
    """An existing (dummy) input file path."""
    path = tmp_path / "clip.avi"
    path.write_bytes(b"\x00")
    return path
