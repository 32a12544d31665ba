"""Double exponential smoothing of tracked face geometry.

Two exponential moving averages in cascade track level and trend, which
allows a short-horizon prediction without a motion model (LaViola,
"Double Exponential Smoothing: An Alternative to Kalman Filter-Based
Predictive Tracking").
"""

from __future__ import annotations

import math
from typing import NamedTuple, Optional, Sequence, Union

import numpy as np

from headtrack.errors import ConfigurationError


class SmoothVector(NamedTuple):
    """Smoothed quantities: face centre, an unused depth slot, and size."""

    x: float
    y: float
    z: float
    width: float
    height: float


VectorLike = Union[SmoothVector, Sequence[float]]


class Smoother:
    """Double exponential smoother over a 5-vector.

    Args:
        alpha: Smoothing factor in (0, 1]. 1 disables smoothing, values near
            0 smooth heavily.
        interval_ms: Expected interval between updates, used to convert a
            prediction horizon into steps.
        interpolate: Predict with fractional steps instead of whole steps.

    Example:
        >>> smoother = Smoother(0.35, 35)
        >>> smoother.init((120, 90, 0, 60, 72))
        >>> smoother.smooth((124, 91, 0, 58, 70))
    """

    def __init__(self, alpha: float, interval_ms: float, interpolate: bool = False):
        if not 0 < alpha <= 1:
            raise ConfigurationError(f"alpha must be in (0, 1], got {alpha}")
        if interval_ms <= 0:
            raise ConfigurationError(f"interval_ms must be > 0, got {interval_ms}")
        self.alpha = alpha
        self.interval_ms = interval_ms
        self.interpolate = interpolate
        self._sp: Optional[np.ndarray] = None
        self._sp2: Optional[np.ndarray] = None

    @property
    def initialized(self) -> bool:
        return self._sp is not None

    @property
    def level(self) -> Optional[SmoothVector]:
        """First smoothing stage."""
        return SmoothVector(*self._sp.tolist()) if self._sp is not None else None

    @property
    def trend_level(self) -> Optional[SmoothVector]:
        """Second smoothing stage."""
        return SmoothVector(*self._sp2.tolist()) if self._sp2 is not None else None

    def init(self, vector: VectorLike) -> None:
        self._sp = _as_vector(vector)
        self._sp2 = self._sp.copy()

    def reset(self) -> None:
        self._sp = None
        self._sp2 = None

    def smooth(self, vector: VectorLike, elapsed_ms: float = 0.0) -> SmoothVector:
        """Update with a new observation and predict ``elapsed_ms`` ahead.

        Raises:
            RuntimeError: If called before :meth:`init`.
        """
        if self._sp is None:
            raise RuntimeError("Smoother is not initialized")

        v = _as_vector(vector)
        a = self.alpha
        self._sp = a * v + (1 - a) * self._sp
        self._sp2 = a * self._sp + (1 - a) * self._sp2
        return self.predict(elapsed_ms)

    def predict(self, elapsed_ms: float) -> SmoothVector:
        if self._sp is None:
            raise RuntimeError("Smoother is not initialized")

        a = self.alpha
        sp, sp2 = self._sp, self._sp2
        if a == 1:
            return SmoothVector(*sp.tolist())

        if self.interpolate:
            step = elapsed_ms / self.interval_ms
            step_lo = math.trunc(step)
            ratio = a / (1 - a)
            out = (step - step_lo) * ratio * (sp - sp2) + (2 + step_lo * ratio) * sp - (1 + step_lo * ratio) * sp2
        else:
            step = math.trunc(elapsed_ms / self.interval_ms)
            ratio = a * step / (1 - a)
            out = (2 + ratio) * sp - (1 + ratio) * sp2
        return SmoothVector(*out.tolist())


def _as_vector(vector: VectorLike) -> np.ndarray:
    arr = np.array(vector, dtype=np.float64)
    if arr.shape != (5,):
        raise ValueError(f"Expected a 5-vector (x, y, z, width, height), got shape {arr.shape}")
    return arr


__all__ = ["SmoothVector", "Smoother"]
