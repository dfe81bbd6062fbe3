"""Tests for image format lookup and encoding."""

import io

import numpy as np
import pytest
from PIL import Image

from framesplit.encoding import ImageFormat, encode, supported_formats
from framesplit.errors import EncodeError
from framesplit.pixels import PixelBuffer

from conftest import pattern


def test_supported_keys():
    assert supported_formats() == ["bmp", "emf", "exif", "gif", "ico", "jpg", "png", "tiff", "wmf"]


@pytest.mark.parametrize("name,expected", [
    ("bmp", ImageFormat.BMP),
    ("PNG", ImageFormat.PNG),
    ("Jpg", ImageFormat.JPG),
    (" tiff ", ImageFormat.TIFF),
])
def test_parse_case_insensitive(name, expected):
    assert ImageFormat.parse(name) is expected


@pytest.mark.parametrize("name", ["jpeg", "webp", "", "b mp"])
def test_parse_unknown(name):
    with pytest.raises(EncodeError):
        ImageFormat.parse(name)


def test_fallback_formats_write_png():
    for fmt in (ImageFormat.EMF, ImageFormat.EXIF, ImageFormat.ICO, ImageFormat.WMF):
        assert fmt.encoder_format == "PNG"
        assert fmt.extension == fmt.key


@pytest.mark.parametrize("fmt", list(ImageFormat))
def test_decoded_size_matches(fmt):
    buf = PixelBuffer(bytearray(pattern(23, 11).tobytes()), 23, 11)

    data = encode(buf, fmt)

    with Image.open(io.BytesIO(data)) as img:
        assert img.size == (23, 11)
        assert img.format == fmt.encoder_format


def test_lossless_with_stride():
    width, height, stride = 5, 3, 20
    buf = PixelBuffer(bytearray(b"\xff" * (stride * height)), width, height, stride)
    img = pattern(width, height)
    buf.as_array()[...] = img

    data = encode(buf, ImageFormat.PNG)

    with Image.open(io.BytesIO(data)) as decoded:
        np.testing.assert_array_equal(np.asarray(decoded.convert("RGB")), img)


def test_released_buffer():
    buf = PixelBuffer.allocate(2, 2)
    buf.release()
    with pytest.raises(EncodeError):
        encode(buf, ImageFormat.BMP)
