"""Pixel buffer helpers: validation, grayscale conversion, whitebalance probe."""

import cv2
import numpy as np

from headtrack.errors import FrameError

# Luma weights used by the cascade detector (R, G, B).
GRAY_WEIGHTS = np.array([0.3, 0.59, 0.11], dtype=np.float32)


def validate_frame(frame: np.ndarray) -> np.ndarray:
    """Check that ``frame`` is a uint8 RGB(A) or grayscale buffer.

    Returns:
        The frame itself (for chaining).

    Raises:
        FrameError: If the buffer has the wrong dtype, rank or channel count.
    """
    if not isinstance(frame, np.ndarray):
        raise FrameError(f"Expected numpy array, got {type(frame).__name__}")
    if frame.dtype != np.uint8:
        raise FrameError(f"Expected uint8 pixels, got {frame.dtype}")
    if frame.ndim == 3:
        if frame.shape[2] not in (3, 4):
            raise FrameError(f"Expected 3 or 4 channels, got {frame.shape[2]}")
    elif frame.ndim != 2:
        raise FrameError(f"Expected (H, W) or (H, W, C) frame, got shape {frame.shape}")
    return frame


def grayscale(frame: np.ndarray, in_place: bool = False) -> np.ndarray:
    """Convert an RGB(A) frame to single-channel intensity.

    Intensity is ``0.3 R + 0.59 G + 0.11 B`` rounded half-to-even. With
    ``in_place=True`` the intensity is also written back into the colour
    channels of ``frame`` (alpha is left untouched).

    Args:
        frame: (H, W, 3|4) uint8 RGB(A) buffer, or an (H, W) buffer that is
            already grayscale.
        in_place: Overwrite the colour channels of ``frame``.

    Returns:
        (H, W) uint8 intensity plane.
    """
    validate_frame(frame)
    if frame.ndim == 2:
        return frame if in_place else frame.copy()

    rgb = frame[..., :3].astype(np.float32)
    gray = np.rint(rgb @ GRAY_WEIGHTS)
    np.clip(gray, 0, 255, out=gray)
    gray = gray.astype(np.uint8)

    if in_place:
        frame[..., 0] = gray
        frame[..., 1] = gray
        frame[..., 2] = gray
    return gray


def average_gray(frame: np.ndarray) -> float:
    """Average gray level of a frame: mean of the per-channel means."""
    validate_frame(frame)
    if frame.size == 0:
        return 0.0
    if frame.ndim == 2:
        return float(frame.mean())
    channel_means = frame[..., :3].reshape(-1, 3).mean(axis=0)
    return float(channel_means.sum() / 3)


def from_bgr(image: np.ndarray) -> np.ndarray:
    """Convert an OpenCV BGR capture to an RGBA frame."""
    validate_frame(image)
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)


__all__ = ["GRAY_WEIGHTS", "validate_frame", "grayscale", "average_gray", "from_bgr"]
