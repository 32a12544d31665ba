"""Tests for the quantized colour histogram."""

import numpy as np
import pytest

from headtrack.camshift.histogram import BIN_COUNT, ColorHistogram, bin_indices, histogram_weights


class TestBinIndices:
    def test_quantization(self):
        pixels = np.array([[[0, 0, 0, 255], [255, 255, 255, 255], [16, 32, 48, 0]]], dtype=np.uint8)
        assert bin_indices(pixels).tolist() == [[0, 4095, 256 * 1 + 16 * 2 + 3]]

    def test_reuses_buffer(self):
        pixels = np.zeros((4, 5, 3), dtype=np.uint8)
        out = np.empty((4, 5), dtype=np.int32)
        assert bin_indices(pixels, out=out) is out


class TestColorHistogram:
    @pytest.mark.parametrize("value", [0, 255])
    def test_uniform_image_fills_one_bin(self, value):
        pixels = np.full((30, 40, 4), value, dtype=np.uint8)
        hist = ColorHistogram.from_pixels(pixels)
        index = 0 if value == 0 else BIN_COUNT - 1
        assert hist[index] == 30 * 40
        assert hist.total == 30 * 40

    def test_random_image_total_equals_pixel_count(self, rng):
        pixels = rng.integers(0, 256, size=(57, 83, 4), dtype=np.uint8)
        hist = ColorHistogram.from_pixels(pixels)
        assert hist.total == 57 * 83
        assert hist.bins.shape == (BIN_COUNT,)

    def test_sub_rectangle(self, rng):
        frame = rng.integers(0, 256, size=(100, 100, 3), dtype=np.uint8)
        hist = ColorHistogram.from_pixels(frame[10:35, 20:60])
        assert hist.total == 25 * 40

    def test_empty_region(self):
        hist = ColorHistogram.from_pixels(np.zeros((0, 10, 4), dtype=np.uint8))
        assert hist.total == 0

    def test_alpha_ignored(self):
        a = np.full((5, 5, 4), 100, dtype=np.uint8)
        b = a.copy()
        b[..., 3] = 0
        assert np.array_equal(ColorHistogram.from_pixels(a).bins, ColorHistogram.from_pixels(b).bins)

    def test_bins_read_only(self):
        hist = ColorHistogram.from_pixels(np.zeros((2, 2, 3), dtype=np.uint8))
        with pytest.raises(ValueError):
            hist.bins[0] = 7

    def test_wrong_bin_count(self):
        with pytest.raises(ValueError):
            ColorHistogram(np.zeros(10))


class TestHistogramWeights:
    def test_ratio_capped_at_one(self):
        model = np.zeros(BIN_COUNT)
        current = np.zeros(BIN_COUNT)
        model[[1, 2, 3]] = [5, 10, 4]
        current[[1, 2, 4]] = [10, 5, 8]

        weights = histogram_weights(ColorHistogram(model), ColorHistogram(current))

        assert weights[1] == pytest.approx(0.5)
        assert weights[2] == 1.0
        assert weights[3] == 0.0  # absent from the current frame
        assert weights[4] == 0.0
        assert weights[0] == 0.0
