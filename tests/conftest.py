"""Shared fixtures for headtrack tests.

All cascades are synthetic; no trained model is needed.
"""

import numpy as np
import pytest

from headtrack.detect.cascade import CascadeModel, Feature, StageClassifier


def make_feature(positives, negatives):
    """Feature from lists of (x, y, z) samples; pads the shorter side with unused slots."""
    size = max(len(positives), len(negatives))
    pos = list(positives) + [(0, 0, -1)] * (size - len(positives))
    neg = list(negatives) + [(0, 0, -1)] * (size - len(negatives))
    return Feature(
        px=tuple(p[0] for p in pos),
        py=tuple(p[1] for p in pos),
        pz=tuple(p[2] for p in pos),
        nx=tuple(n[0] for n in neg),
        ny=tuple(n[1] for n in neg),
        nz=tuple(n[2] for n in neg),
    )


def make_cascade(stages, width=20, height=20):
    """Cascade from ``[(threshold, [(feature, (fail, pass)), ...]), ...]``."""
    classifiers = []
    for threshold, weighted in stages:
        features = tuple(f for f, _ in weighted)
        alpha = tuple(a for _, pair in weighted for a in pair)
        classifiers.append(StageClassifier(threshold=threshold, features=features, alpha=alpha))
    return CascadeModel(width=width, height=height, stages=tuple(classifiers))


@pytest.fixture
def bright_center_cascade():
    """Two-stage cascade accepting windows whose centre is brighter than their corners."""
    return make_cascade([
        (0.0, [(make_feature([(10, 10, 0)], [(0, 0, 0)]), (-1.0, 1.0))]),
        (0.0, [(make_feature([(10, 10, 0)], [(19, 19, 0)]), (-1.0, 1.0))]),
    ])


@pytest.fixture
def cascade_dict():
    """Valid cascade in the JSON dictionary layout."""
    return {
        "count": 2,
        "width": 20,
        "height": 20,
        "stage_classifier": [
            {
                "count": 1,
                "threshold": -0.5,
                "feature": [
                    {"size": 2, "px": [10, 4], "py": [10, 4], "pz": [0, 1],
                     "nx": [0, 0], "ny": [0, 0], "nz": [0, -1]},
                ],
                "alpha": [-1.0, 1.0],
            },
            {
                "count": 2,
                "threshold": 0.0,
                "feature": [
                    {"size": 1, "px": [2], "py": [2], "pz": [2], "nx": [19], "ny": [19], "nz": [0]},
                    {"size": 1, "px": [5], "py": [5], "pz": [1], "nx": [0], "ny": [9], "nz": [1]},
                ],
                "alpha": [-0.5, 0.5, -0.25, 0.75],
            },
        ],
    }


@pytest.fixture
def mid_gray_frame():
    """320x240 RGBA frame of uniform mid-gray."""
    frame = np.full((240, 320, 4), 128, dtype=np.uint8)
    frame[..., 3] = 255
    return frame


@pytest.fixture
def make_disk_frame():
    """Factory for RGBA frames with a coloured disk on a dark background."""
    def _make(cx, cy, radius=20, color=(200, 30, 30), background=(0, 0, 0), size=(320, 240)):
        width, height = size
        frame = np.zeros((height, width, 4), dtype=np.uint8)
        frame[..., :3] = background
        frame[..., 3] = 255
        yy, xx = np.mgrid[0:height, 0:width]
        mask = (xx - cx) ** 2 + (yy - cy) ** 2 <= radius ** 2
        frame[mask, :3] = color
        return frame
    return _make


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def feature_factory():
    return make_feature


@pytest.fixture
def cascade_factory():
    return make_cascade
