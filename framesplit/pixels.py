"""
Raw RGB24 pixel buffer with scoped ownership.

A buffer is allocated per sampled frame, handed through flip / grayscale /
encode and released right after. Use it as a context manager so the storage
is dropped on every exit path:

    with decoder.sample_at(handle, pos, w, h) as buf:
        data = encode(buf, ImageFormat.PNG)
"""

from typing import Optional

import numpy as np

# RGB24 - 3 bytes per pixel, R, G, B order
BYTES_PER_PIXEL = 3


class PixelBuffer:
    def __init__(
        self,
        data: bytearray,
        width: int,
        height: int,
        stride: Optional[int] = None,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"invalid buffer size: {width}x{height}")

        row_bytes = width * BYTES_PER_PIXEL
        stride = row_bytes if stride is None else stride
        if stride < row_bytes:
            raise ValueError(f"stride {stride} < row size {row_bytes}")
        if len(data) < stride * height:
            raise ValueError(
                f"buffer holds {len(data)} bytes, need {stride * height}"
            )

        self._data: Optional[bytearray] = data
        self.width = width
        self.height = height
        self.stride = stride

    @classmethod
    def allocate(
        cls,
        width: int,
        height: int,
        stride: Optional[int] = None,
        size: Optional[int] = None,
    ) -> "PixelBuffer":
        """Zero-filled buffer; size defaults to stride * height."""
        stride = width * BYTES_PER_PIXEL if stride is None else stride
        return cls(bytearray(size or stride * height), width, height, stride)

    # ---------------------------------------------------------------------

    @property
    def data(self) -> bytearray:
        if self._data is None:
            raise RuntimeError("pixel buffer already released")
        return self._data

    @property
    def released(self) -> bool:
        return self._data is None

    def as_array(self) -> np.ndarray:
        """
        Writable (height, width, 3) uint8 view over the buffer.
        Row padding beyond width * 3 is skipped via strides.
        """
        return np.ndarray(
            shape=(self.height, self.width, BYTES_PER_PIXEL),
            dtype=np.uint8,
            buffer=self.data,
            strides=(self.stride, BYTES_PER_PIXEL, 1),
        )

    def release(self) -> None:
        self._data = None

    # ---------------------------------------------------------------------

    def __enter__(self) -> "PixelBuffer":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.release()
        return False


def rotate_flip(buffer: PixelBuffer) -> None:
    """
    Rotate 180 degrees, then mirror horizontally, in place.
    The two mirrors cancel out along x, so this just turns the rows upside down.
    """
    view = buffer.as_array()
    view[:] = view[::-1].copy()
