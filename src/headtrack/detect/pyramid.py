"""Multi-octave image pyramid for the cascade detector."""

from __future__ import annotations

import math
from typing import Dict, List, Tuple

import cv2
import numpy as np

# (dx, dy) source offsets of the four quarter-resolution sampling variants.
VARIANT_OFFSETS: Tuple[Tuple[int, int], ...] = ((0, 0), (1, 0), (0, 1), (1, 1))


def pyramid_scale(interval: int) -> float:
    """Scale ratio between consecutive pyramid levels."""
    return 2 ** (1 / (interval + 1))


def octave_count(
    frame_width: int, frame_height: int, window_width: int, window_height: int, interval: int
) -> int:
    """Number of octaves the detector window can be evaluated at.

    Zero or negative when the frame is smaller than the detector window.
    """
    ratio = min(frame_width / window_width, frame_height / window_height)
    if ratio <= 0:
        return 0
    return int(math.floor(math.log(ratio) / math.log(pyramid_scale(interval))))


def _resample(src: np.ndarray, width: int, height: int, out: np.ndarray = None) -> np.ndarray:
    if width <= 0 or height <= 0 or src.size == 0:
        return np.zeros((max(height, 0), max(width, 0)), dtype=np.uint8)
    if out is not None and out.shape == (height, width):
        return cv2.resize(src, (width, height), dst=out, interpolation=cv2.INTER_AREA)
    return cv2.resize(src, (width, height), interpolation=cv2.INTER_AREA)


class ImagePyramid:
    """Builds and caches the pyramid levels used by one detector.

    ``levels[i][0]`` is the plain level ``i``. Levels ``i >= 2 * (interval + 1)``
    also hold three sub-pixel variants ``levels[i][1..3]``: the half-size
    resample of ``levels[i - interval - 1]`` shifted by one source pixel
    horizontally, vertically, or both, with the uncovered border left at zero.

    Buffers are kept between calls and reused while the frame size and
    octave count stay the same.

    Args:
        interval: Number of intermediate scales per octave.
    """

    def __init__(self, interval: int):
        self.interval = interval
        self.scale = pyramid_scale(interval)
        self._buffers: Dict[Tuple[int, int], np.ndarray] = {}

    def build(self, gray: np.ndarray, octaves: int) -> List[List[np.ndarray]]:
        """Build ``octaves + 2 * (interval + 1)`` levels from a grayscale frame."""
        step = self.interval + 1
        total = octaves + 2 * step
        levels: List[List[np.ndarray]] = [[gray]]
        height, width = gray.shape

        for i in range(1, min(step, total)):
            w = int(math.floor(width / self.scale ** i))
            h = int(math.floor(height / self.scale ** i))
            levels.append([self._store((i, 0), _resample(gray, w, h, self._buffers.get((i, 0))))])

        for i in range(step, total):
            src = levels[i - step][0]
            w = src.shape[1] // 2
            h = src.shape[0] // 2
            variants = [self._store((i, 0), _resample(src, w, h, self._buffers.get((i, 0))))]
            if i >= 2 * step:
                for q, (dx, dy) in enumerate(VARIANT_OFFSETS[1:], start=1):
                    variants.append(self._shifted(i, q, src, w, h, dx, dy))
            levels.append(variants)

        return levels

    def _shifted(
        self, i: int, q: int, src: np.ndarray, width: int, height: int, dx: int, dy: int
    ) -> np.ndarray:
        key = (i, q)
        buf = self._buffers.get(key)
        if buf is None or buf.shape != (max(height, 0), max(width, 0)):
            buf = np.zeros((max(height, 0), max(width, 0)), dtype=np.uint8)
            self._buffers[key] = buf
        tw = width - 2 * dx
        th = height - 2 * dy
        shifted = src[dy:, dx:]
        if tw > 0 and th > 0 and shifted.size:
            buf[:th, :tw] = cv2.resize(shifted, (tw, th), interpolation=cv2.INTER_AREA)
        return buf

    def _store(self, key: Tuple[int, int], level: np.ndarray) -> np.ndarray:
        self._buffers[key] = level
        return level


def build_pyramid(gray: np.ndarray, interval: int, octaves: int) -> List[List[np.ndarray]]:
    """One-shot pyramid build without buffer reuse."""
    return ImagePyramid(interval).build(gray, octaves)


__all__ = ["VARIANT_OFFSETS", "ImagePyramid", "build_pyramid", "octave_count", "pyramid_scale"]
