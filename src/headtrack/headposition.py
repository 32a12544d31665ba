"""Pinhole-camera estimate of the head position relative to the screen.

Assumes a physical head of 16 x 19 cm. The horizontal field of view of the
camera is either given or calibrated once from the face diagonal at an
assumed viewing distance; afterwards the depth follows from the face
diagonal by similar triangles.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from headtrack.errors import ConfigurationError
from headtrack.types import HeadPosition

logger = logging.getLogger(__name__)

HEAD_WIDTH_CM = 16.0
HEAD_HEIGHT_CM = 19.0
DEFAULT_DISTANCE_CM = 60.0
DEFAULT_CAMERA_OFFSET_CM = 11.5
EDGE_MARGIN_PX = 11


class HeadPositionEstimator:
    """Converts tracked face rectangles into head positions in centimetres.

    ``x`` grows to the left of the screen centre as seen by the user, ``y``
    upwards, and ``z`` is the distance from the screen.

    Args:
        face: Initial stable face (centre ``x``, ``y``, ``width``, ``height``).
        cam_width: Frame width in pixels.
        cam_height: Frame height in pixels.
        fov: Horizontal field of view in degrees. Estimated from ``face``
            when omitted.
        distance_to_screen_cm: Assumed distance of the user during FOV
            calibration.
        camera_to_screen_offset_cm: Vertical offset of the camera above the
            screen centre.
        edge_correction: Reconstruct clipped faces at the frame border.

    Raises:
        ConfigurationError: On non-positive camera dimensions, distance, FOV
            or initial face diagonal.
    """

    def __init__(
        self,
        face,
        cam_width: int,
        cam_height: int,
        fov: Optional[float] = None,
        distance_to_screen_cm: Optional[float] = None,
        camera_to_screen_offset_cm: Optional[float] = None,
        edge_correction: bool = True,
    ):
        if cam_width <= 0 or cam_height <= 0:
            raise ConfigurationError(f"Invalid camera dimensions {cam_width}x{cam_height}")
        if distance_to_screen_cm is None:
            distance_to_screen_cm = DEFAULT_DISTANCE_CM
        if camera_to_screen_offset_cm is None:
            camera_to_screen_offset_cm = DEFAULT_CAMERA_OFFSET_CM
        if distance_to_screen_cm <= 0:
            raise ConfigurationError(f"distance_to_screen_cm must be > 0, got {distance_to_screen_cm}")

        self.cam_width = cam_width
        self.cam_height = cam_height
        self.camera_to_screen_offset_cm = camera_to_screen_offset_cm
        self.edge_correction = edge_correction

        small_angle = math.atan(HEAD_WIDTH_CM / HEAD_HEIGHT_CM)
        self._head_diag_cm = math.hypot(HEAD_WIDTH_CM, HEAD_HEIGHT_CM)
        self._sin = math.sin(small_angle)
        self._cos = math.cos(small_angle)
        self._tan = math.tan(small_angle)

        self._head_diag_px = math.hypot(face.width, face.height)

        if fov is None:
            if self._head_diag_px <= 0:
                raise ConfigurationError("Initial face has no extent, cannot calibrate field of view")
            head_width_px = self._sin * self._head_diag_px
            cam_width_cm = cam_width / head_width_px * HEAD_WIDTH_CM
            self._fov = math.atan(cam_width_cm / 2 / distance_to_screen_cm) * 2
            logger.info("Estimated camera field of view: %.1f deg", math.degrees(self._fov))
        else:
            if not 0 < fov < 180:
                raise ConfigurationError(f"fov must be in (0, 180) degrees, got {fov}")
            self._fov = math.radians(fov)

        self._tan_fov = 2 * math.tan(self._fov / 2)
        self._position: Optional[HeadPosition] = None

    @property
    def fov(self) -> float:
        """Horizontal field of view in degrees."""
        return math.degrees(self._fov)

    def get_fov(self) -> float:
        return self.fov

    @property
    def position(self) -> Optional[HeadPosition]:
        """Last estimate, None before the first :meth:`track`."""
        return self._position

    def track(self, face) -> Optional[HeadPosition]:
        """Estimate the head position for one tracked face.

        Returns:
            Head position in cm, or None when the face has no extent.
        """
        w = face.width
        h = face.height
        fx = face.x
        fy = face.y

        if w <= 0 or h <= 0:
            return None

        if self.edge_correction:
            fx, fy = self._correct_edges(fx, fy, w, h)
        else:
            self._head_diag_px = math.hypot(w, h)

        if self._head_diag_px <= 0:
            return None

        z = self._head_diag_cm * self.cam_width / (self._tan_fov * self._head_diag_px)
        x = -(fx / self.cam_width - 0.5) * z * self._tan_fov
        y = -(fy / self.cam_height - 0.5) * z * self._tan_fov * (self.cam_height / self.cam_width)
        y += self.camera_to_screen_offset_cm

        self._position = HeadPosition(x, y, z)
        return self._position

    def _correct_edges(self, fx: float, fy: float, w: float, h: float):
        margin = EDGE_MARGIN_PX
        left = fx - w / 2
        right = self.cam_width - (fx + w / 2)
        top = fy - h / 2
        bottom = self.cam_height - (fy + h / 2)

        on_vertical_edge = left < margin or right < margin
        on_horizontal_edge = top < margin or bottom < margin
        diag = math.hypot(w, h)

        if on_horizontal_edge and on_vertical_edge:
            # Corner: keep the previous diagonal.
            if left < margin:
                fx = w - self._head_diag_px * self._sin / 2
            else:
                fx = fx - w / 2 + self._head_diag_px * self._sin / 2
            if top < margin:
                fy = h - self._head_diag_px * self._cos / 2
            else:
                fy = fy - h / 2 + self._head_diag_px * self._cos / 2
        elif on_horizontal_edge:
            distance = top if top < margin else bottom
            original = distance / margin
            estimate = (margin - distance) / margin
            correction = original * (h / 2) + estimate * (w / self._tan / 2)
            if top < margin:
                fy = h - correction
            else:
                fy = fy - h / 2 + correction
            self._head_diag_px = estimate * (w / self._sin) + original * diag
        elif on_vertical_edge:
            distance = left if left < margin else right
            original = distance / margin
            estimate = (margin - distance) / margin
            self._head_diag_px = estimate * (h / self._cos) + original * diag
            correction = original * (w / 2) + estimate * (h * self._tan / 2)
            if left < margin:
                fx = w - correction
            else:
                fx = fx - w / 2 + correction
        else:
            self._head_diag_px = diag

        return fx, fy


__all__ = ["HEAD_WIDTH_CM", "HEAD_HEIGHT_CM", "EDGE_MARGIN_PX", "HeadPositionEstimator"]
