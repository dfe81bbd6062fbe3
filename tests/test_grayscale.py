"""Tests for the grayscale lookup table and converter."""

import numpy as np
import pytest
from PIL import Image

from framesplit.grayscale import LOOKUP_TABLE, GrayscaleConverter, build_lookup_table
from framesplit.pixels import PixelBuffer

from conftest import pattern


class TestLookupTable:
    def test_pure_red_floors(self):
        # 0.3 * 255 = 76.5
        assert LOOKUP_TABLE[255, 0, 0] == 76

    def test_green_is_ignored(self):
        assert LOOKUP_TABLE[0, 255, 0] == 0
        assert LOOKUP_TABLE[10, 0, 20] == LOOKUP_TABLE[10, 255, 20]

    def test_blue_weighted_twice(self):
        # 0.59 * 255 + 0.11 * 255 = 178.5
        assert LOOKUP_TABLE[0, 0, 255] == 178
        assert LOOKUP_TABLE[255, 255, 255] == 255

    @pytest.mark.parametrize("r,g,b", [(1, 1, 1), (64, 12, 64), (200, 0, 31), (17, 99, 250)])
    def test_exact_floor(self, r, g, b):
        assert LOOKUP_TABLE[r, g, b] == (30 * r + 59 * b + 11 * b) // 100

    def test_gray_inputs_map_to_themselves(self):
        values = np.arange(256)
        assert (LOOKUP_TABLE[values, values, values] == values).all()

    def test_read_only(self):
        assert LOOKUP_TABLE.shape == (256, 256, 256)
        assert LOOKUP_TABLE.dtype == np.uint8
        with pytest.raises(ValueError):
            LOOKUP_TABLE[0, 0, 0] = 1

    def test_rebuild_is_identical(self):
        np.testing.assert_array_equal(build_lookup_table()[::17, ::5, ::3], LOOKUP_TABLE[::17, ::5, ::3])


class TestConvert:
    def test_channels_equal_table_value(self):
        img = pattern(7, 5)
        src = PixelBuffer(bytearray(img.tobytes()), 7, 5)

        out = GrayscaleConverter().convert(src).as_array()

        expected = LOOKUP_TABLE[img[..., 0], img[..., 1], img[..., 2]]
        for c in range(3):
            np.testing.assert_array_equal(out[..., c], expected)

    def test_source_untouched(self):
        img = pattern(4, 4)
        src = PixelBuffer(bytearray(img.tobytes()), 4, 4)
        GrayscaleConverter().convert(src)
        np.testing.assert_array_equal(src.as_array(), img)

    def test_padded_stride(self):
        width, height, stride = 3, 4, 12
        data = bytearray(b"\x7f" * (stride * height))
        src = PixelBuffer(data, width, height, stride)
        src.as_array()[...] = pattern(width, height)

        out = GrayscaleConverter().convert(src)

        assert (out.width, out.height, out.stride) == (width, height, stride)
        img = src.as_array()
        expected = LOOKUP_TABLE[img[..., 0], img[..., 1], img[..., 2]]
        np.testing.assert_array_equal(out.as_array()[..., 1], expected)
        # padding of the new buffer stays zeroed
        for row in range(height):
            assert out.data[row * stride + 9: (row + 1) * stride] == b"\x00\x00\x00"

    def test_idempotent(self):
        rng = np.random.default_rng(7)
        img = rng.integers(0, 256, size=(16, 9, 3), dtype=np.uint8)
        conv = GrayscaleConverter()

        once = conv.convert(PixelBuffer(bytearray(img.tobytes()), 9, 16))
        twice = conv.convert(once)

        np.testing.assert_array_equal(once.as_array(), twice.as_array())

    def test_rejects_bad_table(self):
        with pytest.raises(ValueError):
            GrayscaleConverter(np.zeros((256, 256), dtype=np.uint8))


def test_convert_image(tmp_path):
    img = pattern(6, 4)
    src = tmp_path / "in.bmp"
    Image.fromarray(img).save(src)
    dst = tmp_path / "nested" / "out.bmp"

    GrayscaleConverter().convert_image(src, dst)

    with Image.open(dst) as result:
        assert result.format == "BMP"
        assert result.size == (6, 4)
        arr = np.asarray(result.convert("RGB"))
    expected = LOOKUP_TABLE[img[..., 0], img[..., 1], img[..., 2]]
    np.testing.assert_array_equal(arr[..., 0], expected)
    np.testing.assert_array_equal(arr[..., 2], expected)
