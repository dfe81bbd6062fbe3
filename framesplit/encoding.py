"""
Image encoding of pixel buffers via Pillow.

Supported keys (case-insensitive): bmp, emf, exif, gif, ico, jpg, png, tiff, wmf.
emf / exif / ico / wmf have no raster encoder and are written as PNG data,
the same fallback the frames were historically produced with; the file
extension still follows the key.
"""

import io
from enum import Enum
from types import MappingProxyType
from typing import Optional

from PIL import Image

from framesplit.errors import EncodeError
from framesplit.pixels import PixelBuffer


class ImageFormat(Enum):
    BMP = ("bmp", "BMP")
    EMF = ("emf", None)
    EXIF = ("exif", None)
    GIF = ("gif", "GIF")
    ICO = ("ico", None)
    JPG = ("jpg", "JPEG")
    PNG = ("png", "PNG")
    TIFF = ("tiff", "TIFF")
    WMF = ("wmf", None)

    def __init__(self, key: str, encoder: Optional[str]) -> None:
        self.key = key
        self._encoder = encoder

    @property
    def extension(self) -> str:
        return self.key

    @property
    def encoder_format(self) -> str:
        """Pillow format name actually used to write the bytes."""
        return self._encoder or "PNG"

    @classmethod
    def parse(cls, name: str) -> "ImageFormat":
        fmt = _FORMATS_BY_KEY.get(name.strip().lower())
        if fmt is None:
            raise EncodeError(
                f"unsupported image format {name!r}, expected one of: {', '.join(_FORMATS_BY_KEY)}"
            )
        return fmt


_FORMATS_BY_KEY = MappingProxyType({fmt.key: fmt for fmt in ImageFormat})


def supported_formats() -> list[str]:
    return list(_FORMATS_BY_KEY)


def encode(buffer: PixelBuffer, image_format: ImageFormat) -> bytes:
    """Encode an RGB24 buffer (stride honoured) into image file bytes."""
    try:
        image = Image.frombuffer(
            "RGB",
            (buffer.width, buffer.height),
            bytes(buffer.data),
            "raw",
            "RGB",
            buffer.stride,
            1,
        )
        out = io.BytesIO()
        image.save(out, format=image_format.encoder_format)
    except (OSError, ValueError, KeyError, RuntimeError) as e:
        raise EncodeError(f"{image_format.key} encoding failed: {e}") from e

    return out.getvalue()
