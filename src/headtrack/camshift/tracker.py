"""CAMShift colour tracker.

The model histogram is taken once from the seed rectangle. Every frame the
whole image is back-projected through ``min(model / current, 1)`` weights and
the search window climbs the resulting probability field by mean shift.
Size and orientation of the object are then read from the second-order
moments of the converged window.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Optional, Tuple

import numpy as np

from headtrack.camshift.histogram import ColorHistogram, bin_indices, histogram_weights
from headtrack.camshift.moments import Moments, compute_moments
from headtrack.errors import FrameError
from headtrack.image import validate_frame
from headtrack.types import Rect, TrackedRect

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 10


@dataclass(frozen=True)
class MeanShiftResult:
    """Outcome of one mean-shift search.

    Attributes:
        moments: Moments of the final window, with second-order terms.
        window: Final search window, top-left clamped into the frame.
        iterations: Iterations performed.
        converged: Whether the window stopped moving before the cap.
    """

    moments: Moments
    window: Rect
    iterations: int
    converged: bool


def mean_shift(
    pdf: np.ndarray, window: Rect, max_iterations: int = MAX_ITERATIONS
) -> Optional[MeanShiftResult]:
    """Move ``window`` towards the local density maximum of ``pdf``.

    Returns:
        The search result, or None when the window lost all probability mass.
    """
    height, width = pdf.shape[:2]
    x, y = int(window.x), int(window.y)
    ww, wh = int(window.width), int(window.height)
    prev = (x, y)
    moments = None
    converged = False

    iteration = 0
    for iteration in range(max_iterations):
        wx = max(x, 0)
        wy = max(y, 0)
        x_end = min(wx + ww, width)
        y_end = min(wy + wh, height)

        moments = compute_moments(pdf, wx, wy, x_end, y_end, second=iteration == max_iterations - 1)
        if moments is None:
            return None

        x += int(moments.xc - ww / 2)
        y += int(moments.yc - wh / 2)

        if (x, y) == prev:
            if not moments.second_order:
                moments = compute_moments(pdf, wx, wy, x_end, y_end, second=True)
            converged = True
            break
        prev = (x, y)

    if moments is None:
        return None

    x = max(0, min(x, width))
    y = max(0, min(y, height))
    return MeanShiftResult(
        moments=moments,
        window=Rect(x, y, ww, wh),
        iterations=iteration + 1,
        converged=converged,
    )


def camshift_shape(moments: Moments, calc_angles: bool = True) -> Optional[Tuple[int, int, float]]:
    """Object (width, height, angle) from second-order moments.

    Returns None for degenerate moments (no mass, negative or NaN radicands).
    """
    if moments is None or moments.m00 == 0:
        return None

    a = moments.mu20 / moments.m00
    c = moments.mu02 / moments.m00

    if calc_angles:
        b = moments.mu11 / moments.m00
        d = a + c
        e = math.sqrt(4 * b * b + (a - c) * (a - c))
        minor = (d - e) / 2
        major = (d + e) / 2
        if not (minor >= 0 and major >= 0):
            return None
        angle = math.atan2(2 * b, a - c + e)
        if angle < 0:
            angle += math.pi
        return int(math.sqrt(minor)) * 4, int(math.sqrt(major)) * 4, angle

    if not (a >= 0 and c >= 0):
        return None
    return int(math.sqrt(a)) * 4, int(math.sqrt(c)) * 4, math.pi / 2


class CamShiftTracker:
    """Continuously adaptive mean-shift tracker.

    Args:
        calc_angles: Recover orientation from the mixed moment. Without it
            the angle is fixed at pi/2.
        max_iterations: Mean-shift iteration cap per frame.
        growth: Factor applied to the tracked size to get the next
            search window.

    Example:
        >>> tracker = CamShiftTracker()
        >>> tracker.init_tracker(frame, Rect(100, 80, 60, 60))
        >>> obj = tracker.track(next_frame)
    """

    def __init__(self, calc_angles: bool = True, max_iterations: int = MAX_ITERATIONS, growth: float = 1.1):
        self.calc_angles = calc_angles
        self.max_iterations = max_iterations
        self.growth = growth

        self._model: Optional[ColorHistogram] = None
        self._search_window: Optional[Rect] = None
        self._track_object: Optional[TrackedRect] = None
        self._indices: Optional[np.ndarray] = None
        self._pdf: Optional[np.ndarray] = None

    @property
    def initialized(self) -> bool:
        return self._model is not None

    @property
    def search_window(self) -> Optional[Rect]:
        return self._search_window.copy() if self._search_window is not None else None

    @property
    def track_object(self) -> Optional[TrackedRect]:
        """Last successfully tracked object."""
        return self._track_object

    @property
    def model_histogram(self) -> Optional[ColorHistogram]:
        return self._model

    @property
    def probability(self) -> Optional[np.ndarray]:
        """Copy of the last back-projection, shape (H, W)."""
        return self._pdf.copy() if self._pdf is not None else None

    def back_projection_image(self) -> Optional[np.ndarray]:
        """Last back-projection as a uint8 intensity image."""
        if self._pdf is None:
            return None
        return np.floor(self._pdf * 255).astype(np.uint8)

    def init_tracker(self, frame: np.ndarray, rect: Rect) -> None:
        """Take the model histogram from ``rect`` and start searching there."""
        _check_color(frame)
        rect = rect.floored()
        height, width = frame.shape[:2]
        x0 = min(max(rect.x, 0), width)
        y0 = min(max(rect.y, 0), height)
        x1 = min(max(rect.x + rect.width, 0), width)
        y1 = min(max(rect.y + rect.height, 0), height)

        self._model = ColorHistogram.from_pixels(frame[y0:y1, x0:x1])
        self._search_window = rect
        self._track_object = None
        logger.debug("CamShift initialised on %s (%d model pixels)", rect, self._model.total)

    def track(self, frame: np.ndarray) -> Optional[TrackedRect]:
        """Locate the object in ``frame``.

        Returns:
            Tracked object (centre, size, angle), or None when the object is
            lost. The search window is left unchanged on loss.

        Raises:
            RuntimeError: If called before :meth:`init_tracker`.
            FrameError: If the frame is not an RGB(A) buffer.
        """
        if self._model is None:
            raise RuntimeError("CamShiftTracker.track() called before init_tracker()")
        _check_color(frame)
        height, width = frame.shape[:2]
        if width == 0 or height == 0:
            return None

        pdf = self._back_project(frame)

        result = mean_shift(pdf, self._search_window, self.max_iterations)
        if result is None:
            logger.debug("CamShift lost: no probability mass in %s", self._search_window)
            return None

        shape = camshift_shape(result.moments, self.calc_angles)
        if shape is None:
            logger.debug("CamShift lost: degenerate moments")
            return None
        obj_width, obj_height, angle = shape

        window = result.window
        cx = int(math.floor(max(0, min(window.x + window.width / 2, width))))
        cy = int(math.floor(max(0, min(window.y + window.height / 2, height))))

        self._search_window = Rect(
            window.x,
            window.y,
            int(math.floor(self.growth * obj_width)),
            int(math.floor(self.growth * obj_height)),
        )
        self._track_object = TrackedRect(cx, cy, obj_width, obj_height, angle)
        return self._track_object

    def _back_project(self, frame: np.ndarray) -> np.ndarray:
        current = ColorHistogram.from_pixels(frame)
        weights = histogram_weights(self._model, current).astype(np.float32)

        self._indices = bin_indices(frame, out=self._indices)
        if self._pdf is None or self._pdf.shape != self._indices.shape:
            self._pdf = np.empty(self._indices.shape, dtype=np.float32)
        np.take(weights, self._indices, out=self._pdf)
        return self._pdf


def _check_color(frame: np.ndarray) -> None:
    validate_frame(frame)
    if frame.ndim != 3:
        raise FrameError(f"CamShift needs an RGB(A) frame, got shape {frame.shape}")


__all__ = ["MAX_ITERATIONS", "MeanShiftResult", "mean_shift", "camshift_shape", "CamShiftTracker"]
