"""CAMShift colour-histogram tracking."""

from headtrack.camshift.histogram import BIN_COUNT, ColorHistogram, bin_indices, histogram_weights
from headtrack.camshift.moments import Moments, compute_moments
from headtrack.camshift.tracker import (
    CamShiftTracker,
    MeanShiftResult,
    camshift_shape,
    mean_shift,
)

__all__ = [
    "BIN_COUNT",
    "ColorHistogram",
    "bin_indices",
    "histogram_weights",
    "Moments",
    "compute_moments",
    "CamShiftTracker",
    "MeanShiftResult",
    "camshift_shape",
    "mean_shift",
]
