"""Statistical moments of a probability field over a rectangular window."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class Moments:
    """Raw and central moments, coordinates relative to the window origin.

    Second-order terms are zero unless requested.
    """

    m00: float
    m10: float
    m01: float
    m11: float = 0.0
    m20: float = 0.0
    m02: float = 0.0
    mu20: float = 0.0
    mu02: float = 0.0
    mu11: float = 0.0
    second_order: bool = False

    @property
    def xc(self) -> float:
        return self.m10 / self.m00

    @property
    def yc(self) -> float:
        return self.m01 / self.m00


def compute_moments(
    pdf: np.ndarray, x: int, y: int, x_end: int, y_end: int, second: bool = False
) -> Optional[Moments]:
    """Moments of ``pdf[y:y_end, x:x_end]``.

    Args:
        pdf: (H, W) float probability field.
        x: Window left edge (inclusive).
        y: Window top edge (inclusive).
        x_end: Window right edge (exclusive).
        y_end: Window bottom edge (exclusive).
        second: Also compute second-order and central moments.

    Returns:
        Moments, or None when the window holds no probability mass.
    """
    window = pdf[max(y, 0):max(y_end, 0), max(x, 0):max(x_end, 0)].astype(np.float64)
    if window.size == 0:
        return None

    m00 = float(window.sum())
    if m00 == 0:
        return None

    vx = np.arange(window.shape[1], dtype=np.float64)
    vy = np.arange(window.shape[0], dtype=np.float64)
    col = window.sum(axis=0)
    row = window.sum(axis=1)
    m10 = float(col @ vx)
    m01 = float(row @ vy)
    if not second:
        return Moments(m00=m00, m10=m10, m01=m01)

    m11 = float(vy @ window @ vx)
    m20 = float(col @ (vx * vx))
    m02 = float(row @ (vy * vy))
    xc = m10 / m00
    yc = m01 / m00
    return Moments(
        m00=m00,
        m10=m10,
        m01=m01,
        m11=m11,
        m20=m20,
        m02=m02,
        mu20=m20 - m10 * xc,
        mu02=m02 - m01 * yc,
        mu11=m11 - m01 * xc,
        second_order=True,
    )


__all__ = ["Moments", "compute_moments"]
