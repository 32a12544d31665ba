"""Quantized RGB joint histogram (16 levels per channel)."""

from __future__ import annotations

from typing import Optional

import numpy as np

BIN_COUNT = 4096


def bin_indices(pixels: np.ndarray, out: Optional[np.ndarray] = None) -> np.ndarray:
    """Histogram bin of every pixel: ``256 * (R >> 4) + 16 * (G >> 4) + (B >> 4)``.

    Args:
        pixels: (..., 3|4) uint8 RGB(A) pixels.
        out: Optional int32 buffer shaped like ``pixels[..., 0]`` to reuse.

    Returns:
        int32 array of bin indices shaped ``pixels.shape[:-1]``.
    """
    r = pixels[..., 0] >> 4
    g = pixels[..., 1] >> 4
    b = pixels[..., 2] >> 4
    if out is None or out.shape != r.shape:
        out = np.empty(r.shape, dtype=np.int32)
    np.multiply(r, 256, out=out, dtype=np.int32)
    out += g.astype(np.int32) * 16
    out += b
    return out


class ColorHistogram:
    """4096-bin colour histogram.

    The sum of all bins equals the number of sampled pixels.
    """

    def __init__(self, bins: np.ndarray):
        bins = np.asarray(bins, dtype=np.int64)
        if bins.shape != (BIN_COUNT,):
            raise ValueError(f"Histogram needs {BIN_COUNT} bins, got shape {bins.shape}")
        bins.setflags(write=False)
        self._bins = bins

    @classmethod
    def from_pixels(cls, pixels: np.ndarray) -> "ColorHistogram":
        """Count every pixel of an (H, W, 3|4) uint8 buffer."""
        if pixels.size == 0:
            return cls(np.zeros(BIN_COUNT, dtype=np.int64))
        counts = np.bincount(bin_indices(pixels).ravel(), minlength=BIN_COUNT)
        return cls(counts)

    @property
    def bins(self) -> np.ndarray:
        return self._bins

    @property
    def total(self) -> int:
        return int(self._bins.sum())

    def __getitem__(self, index: int) -> int:
        return int(self._bins[index])

    def __len__(self) -> int:
        return BIN_COUNT


def histogram_weights(model: ColorHistogram, current: ColorHistogram) -> np.ndarray:
    """Per-bin probability ``min(model / current, 1)``, 0 where ``current`` is empty."""
    m = model.bins.astype(np.float64)
    c = current.bins.astype(np.float64)
    weights = np.zeros(BIN_COUNT, dtype=np.float64)
    np.divide(m, c, out=weights, where=c != 0)
    np.minimum(weights, 1.0, out=weights)
    return weights


__all__ = ["BIN_COUNT", "ColorHistogram", "bin_indices", "histogram_weights"]
