"""Tests for PixelBuffer construction and resampling."""

from __future__ import annotations

import numpy as np
import pytest

from privacy_blur.core.pixel_buffer import PixelBuffer


class TestConstruction:
    def test_rejects_wrong_shape(self):
        with pytest.raises(ValueError, match="shaped"):
            PixelBuffer(np.zeros((4, 4, 3), dtype=np.uint8))

    def test_rejects_wrong_dtype(self):
        with pytest.raises(ValueError, match="uint8"):
            PixelBuffer(np.zeros((4, 4, 4), dtype=np.float32))

    def test_from_rgb_adds_opaque_alpha(self):
        buf = PixelBuffer.from_array(np.full((2, 3, 3), 9, dtype=np.uint8))
        assert buf.size == (3, 2)
        assert (buf.pixels[:, :, 3] == 255).all()

    def test_from_bgr_swaps_channels(self):
        arr = np.zeros((1, 1, 3), dtype=np.uint8)
        arr[0, 0] = (10, 20, 30)  # B, G, R
        buf = PixelBuffer.from_array(arr, order="BGR")
        assert tuple(buf.pixels[0, 0]) == (30, 20, 10, 255)

    def test_from_bgra_keeps_alpha(self):
        arr = np.array([[[1, 2, 3, 4]]], dtype=np.uint8)
        buf = PixelBuffer.from_array(arr, order="BGRA")
        assert tuple(buf.pixels[0, 0]) == (3, 2, 1, 4)

    def test_from_grayscale(self):
        buf = PixelBuffer.from_array(np.full((3, 2), 77, dtype=np.uint8))
        assert tuple(buf.pixels[1, 1]) == (77, 77, 77, 255)

    def test_from_float_clips(self):
        buf = PixelBuffer.from_array(np.full((1, 1, 3), 300.0))
        assert tuple(buf.pixels[0, 0]) == (255, 255, 255, 255)

    def test_unknown_order(self):
        with pytest.raises(ValueError, match="channel order"):
            PixelBuffer.from_array(np.zeros((1, 1, 3), dtype=np.uint8), order="YUV")

    def test_solid(self):
        buf = PixelBuffer.solid(4, 2, (1, 2, 3, 4))
        assert buf.size == (4, 2)
        assert (buf.pixels == np.array([1, 2, 3, 4], dtype=np.uint8)).all()


class TestResampling:
    def test_downsample_by_four(self):
        buf = PixelBuffer.solid(40, 20, (50, 60, 70, 255))
        small = buf.downsampled(4)
        assert small.size == (10, 5)
        assert tuple(small.pixels[2, 2]) == (50, 60, 70, 255)

    def test_downsample_never_below_one_pixel(self):
        assert PixelBuffer.solid(3, 2, (0, 0, 0, 255)).downsampled(8).size == (1, 1)

    def test_downsample_factor_one_copies(self):
        buf = PixelBuffer.solid(3, 3, (0, 0, 0, 255))
        out = buf.downsampled(1)
        assert out is not buf
        assert np.array_equal(out.pixels, buf.pixels)

    def test_upscale(self):
        buf = PixelBuffer.solid(2, 2, (200, 100, 0, 255))
        big = buf.resized(16, 8)
        assert big.size == (16, 8)
        assert tuple(big.pixels[4, 8]) == (200, 100, 0, 255)

    def test_resize_empty(self):
        empty = PixelBuffer(np.zeros((0, 0, 4), dtype=np.uint8))
        assert empty.resized(3, 3).size == (3, 3)
