"""Tests for the pinhole head position model."""

import math

import pytest

from headtrack.errors import ConfigurationError
from headtrack.headposition import HEAD_HEIGHT_CM, HEAD_WIDTH_CM, HeadPositionEstimator
from headtrack.types import TrackedFace


def _face(x=160, y=120, width=60, height=70):
    return TrackedFace(x=x, y=y, width=width, height=height, confidence=1.0)


class TestCalibration:
    def test_fov_estimate_decreases_with_distance(self):
        """A farther assumed user means the same face spans a narrower view."""
        fovs = [
            HeadPositionEstimator(_face(), 320, 240, distance_to_screen_cm=d).fov
            for d in (30, 45, 60, 90, 120)
        ]
        assert all(a > b for a, b in zip(fovs, fovs[1:]))

    def test_fov_estimate_formula(self):
        face = _face()
        estimator = HeadPositionEstimator(face, 320, 240)

        sin = math.sin(math.atan(HEAD_WIDTH_CM / HEAD_HEIGHT_CM))
        head_width_px = sin * math.hypot(face.width, face.height)
        cam_width_cm = 320 / head_width_px * HEAD_WIDTH_CM
        assert estimator.fov == pytest.approx(math.degrees(2 * math.atan(cam_width_cm / 2 / 60)))
        assert estimator.get_fov() == estimator.fov

    def test_explicit_fov(self):
        assert HeadPositionEstimator(_face(), 320, 240, fov=60).fov == pytest.approx(60)

    @pytest.mark.parametrize("width, height", [(0, 240), (320, 0), (-1, -1)])
    def test_invalid_camera(self, width, height):
        with pytest.raises(ConfigurationError):
            HeadPositionEstimator(_face(), width, height)

    def test_invalid_distance(self):
        with pytest.raises(ConfigurationError):
            HeadPositionEstimator(_face(), 320, 240, distance_to_screen_cm=0)

    def test_empty_initial_face_without_fov(self):
        with pytest.raises(ConfigurationError):
            HeadPositionEstimator(_face(width=0, height=0), 320, 240)


class TestTrack:
    def test_z_decreases_with_diagonal(self):
        estimator = HeadPositionEstimator(_face(), 320, 240, fov=60)
        zs = [estimator.track(_face(width=s, height=s * 1.2)).z for s in (30, 40, 50, 60, 70)]
        assert all(a > b for a, b in zip(zs, zs[1:]))

    def test_centred_face(self):
        estimator = HeadPositionEstimator(_face(), 320, 240, fov=60, camera_to_screen_offset_cm=11.5)
        face = _face()
        position = estimator.track(face)

        head_diag_cm = math.hypot(HEAD_WIDTH_CM, HEAD_HEIGHT_CM)
        expected_z = head_diag_cm * 320 / (2 * math.tan(math.radians(30)) * math.hypot(60, 70))
        assert position.z == pytest.approx(expected_z)
        assert position.x == pytest.approx(0.0)
        assert position.y == pytest.approx(11.5)
        assert estimator.position == position

    def test_lateral_direction(self):
        estimator = HeadPositionEstimator(_face(), 320, 240, fov=60)
        left = estimator.track(_face(x=100))
        right = estimator.track(_face(x=220))
        up = estimator.track(_face(y=90))
        assert left.x > 0 > right.x
        assert up.y > 11.5

    def test_edge_correction_changes_estimate_near_border(self):
        near_left = _face(x=25, width=40, height=48)
        corrected = HeadPositionEstimator(_face(), 320, 240, fov=60).track(near_left)
        raw = HeadPositionEstimator(_face(), 320, 240, fov=60, edge_correction=False).track(near_left)

        assert corrected.x != pytest.approx(raw.x)
        assert corrected.z != pytest.approx(raw.z)
        assert all(math.isfinite(v) for v in (corrected.x, corrected.y, corrected.z))

    def test_edge_correction_inactive_in_centre(self):
        face = _face()
        corrected = HeadPositionEstimator(face, 320, 240, fov=60).track(face)
        raw = HeadPositionEstimator(face, 320, 240, fov=60, edge_correction=False).track(face)
        assert corrected == raw

    def test_corner_keeps_previous_diagonal(self):
        estimator = HeadPositionEstimator(_face(), 320, 240, fov=60)
        before = estimator.track(_face())
        corner = estimator.track(_face(x=12, y=12, width=20, height=20))
        assert corner.z == pytest.approx(before.z)

    def test_empty_face(self):
        estimator = HeadPositionEstimator(_face(), 320, 240, fov=60)
        assert estimator.track(_face(width=0, height=0)) is None
