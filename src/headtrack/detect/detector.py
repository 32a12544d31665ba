"""Cascade object detector over a multi-octave image pyramid.

Every octave addresses three pyramid levels at once: the octave's own level,
the level one octave down (half resolution) and the level two octaves down
(quarter resolution, in four sub-pixel variants). Detector windows step by
one quarter-resolution pixel, i.e. four full-resolution pixels, and the
variants fill in the two-pixel offsets in between.

Windows are evaluated stage by stage in bulk. Only windows that survived
stage ``j`` are handed to stage ``j + 1``, so a rejected window never reaches
a later stage.
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

import numpy as np

from headtrack.detect.cascade import CascadeModel, StageTable
from headtrack.detect.grouping import group_rectangles
from headtrack.detect.pyramid import VARIANT_OFFSETS, ImagePyramid, octave_count
from headtrack.errors import ConfigurationError
from headtrack.image import validate_frame
from headtrack.types import DetectionRect

logger = logging.getLogger(__name__)

# Sentinels outside the uint8 range for unused sample slots.
_NO_POSITIVE = 256
_NO_NEGATIVE = -1


class ObjectDetector:
    """Boosted-cascade detector.

    Args:
        cascade: Pre-trained cascade model.
        interval: Number of intermediate scales between octaves.
        min_neighbors: Minimum raw hits per reported cluster; ``<= 0`` returns
            raw hits without grouping.

    Example:
        >>> detector = ObjectDetector(load_cascade(), interval=5, min_neighbors=1)
        >>> faces = detector.detect(grayscale(frame))
    """

    def __init__(self, cascade: CascadeModel, interval: int = 5, min_neighbors: int = 1):
        if interval < 0:
            raise ConfigurationError(f"interval must be >= 0, got {interval}")
        self.cascade = cascade
        self.interval = interval
        self.min_neighbors = min_neighbors
        self._pyramid = ImagePyramid(interval)

    @property
    def scale(self) -> float:
        return self._pyramid.scale

    def detect(self, gray: np.ndarray) -> List[DetectionRect]:
        """Detect objects in a grayscale frame.

        Returns:
            Grouped detections (raw hits when ``min_neighbors <= 0``). Empty
            when nothing is found or the frame is smaller than the window.
        """
        hits = self.detect_raw(gray)
        result = group_rectangles(hits, self.min_neighbors)
        logger.debug("Cascade produced %d raw hits, %d after grouping", len(hits), len(result))
        return result

    def detect_raw(self, gray: np.ndarray) -> List[DetectionRect]:
        """Run the cascade over all octaves without grouping."""
        validate_frame(gray)
        if gray.ndim != 2:
            raise ValueError(f"Detector expects a (H, W) grayscale frame, got shape {gray.shape}")

        height, width = gray.shape
        octaves = octave_count(width, height, self.cascade.width, self.cascade.height, self.interval)
        if octaves <= 0:
            return []

        levels = self._pyramid.build(gray, octaves)
        hits: List[DetectionRect] = []
        factor = 1.0
        for i in range(octaves):
            hits.extend(self._scan_octave(levels, i, factor))
            factor *= self.scale
        return hits

    def _scan_octave(
        self, levels: List[List[np.ndarray]], octave: int, factor: float
    ) -> List[DetectionRect]:
        step = self.interval + 1
        full = levels[octave][0]
        half = levels[octave + step][0]
        quarter = levels[octave + 2 * step]

        qh = quarter[0].shape[0] - self.cascade.height // 4
        qw = quarter[0].shape[1] - self.cascade.width // 4
        if qw <= 0 or qh <= 0:
            return []

        strides = (full.shape[1], half.shape[1], quarter[0].shape[1])
        tables = self.cascade.tables
        offsets = [derive_offsets(table, strides) for table in tables]

        ys, xs = np.mgrid[0:qh, 0:qw]
        xs = xs.ravel().astype(np.int64)
        ys = ys.ravel().astype(np.int64)

        hits = []
        full_flat = full.ravel()
        half_flat = half.ravel()
        for q, (dx, dy) in enumerate(VARIANT_OFFSETS):
            planes = (full_flat, half_flat, quarter[q].ravel())
            origins = (
                (4 * ys + 2 * dy) * strides[0] + 4 * xs + 2 * dx,
                (2 * ys + dy) * strides[1] + 2 * xs + dx,
                ys * strides[2] + xs,
            )

            alive = np.arange(xs.size)
            sums = np.zeros(0)
            for j, table in enumerate(tables):
                sums = self._evaluate_stage(j, table, offsets[j], planes, [o[alive] for o in origins])
                keep = sums >= table.threshold
                alive = alive[keep]
                sums = sums[keep]
                if alive.size == 0:
                    break

            for idx, confidence in zip(alive.tolist(), sums.tolist()):
                hits.append(DetectionRect(
                    x=(xs[idx] * 4 + dx * 2) * factor,
                    y=(ys[idx] * 4 + dy * 2) * factor,
                    width=self.cascade.width * factor,
                    height=self.cascade.height * factor,
                    confidence=confidence,
                    neighbors=1,
                ))
        return hits

    def _evaluate_stage(
        self,
        stage_index: int,
        table: StageTable,
        offsets: Tuple[np.ndarray, np.ndarray],
        planes: Sequence[np.ndarray],
        origins: Sequence[np.ndarray],
    ) -> np.ndarray:
        """Stage sum for every window in ``origins``.

        A feature contributes ``alpha[k, 1]`` when the darkest of its positive
        samples is brighter than the brightest of its negative samples, and
        ``alpha[k, 0]`` otherwise.
        """
        p_off, n_off = offsets
        n_windows = origins[0].size
        n_features = table.px.shape[0]

        pmin = np.full((n_features, n_windows), _NO_POSITIVE, dtype=np.int16)
        nmax = np.full((n_features, n_windows), _NO_NEGATIVE, dtype=np.int16)
        for s in range(table.px.shape[1]):
            for z in range(3):
                rows = np.flatnonzero(table.pz[:, s] == z)
                if rows.size:
                    idx = origins[z][None, :] + p_off[rows, s][:, None]
                    pmin[rows] = np.minimum(pmin[rows], np.take(planes[z], idx, mode="clip"))
                rows = np.flatnonzero(table.nz[:, s] == z)
                if rows.size:
                    idx = origins[z][None, :] + n_off[rows, s][:, None]
                    nmax[rows] = np.maximum(nmax[rows], np.take(planes[z], idx, mode="clip"))

        contributions = np.where(pmin > nmax, table.alpha[:, 1:2], table.alpha[:, 0:1])
        return contributions.sum(axis=0)


def derive_offsets(table: StageTable, strides: Sequence[int]) -> Tuple[np.ndarray, np.ndarray]:
    """Linear buffer offsets of every sample for one octave.

    ``x + y * stride[level]``; computed into fresh arrays so the cascade's
    canonical tables stay untouched.
    """
    stride = np.asarray(strides, dtype=np.int64)
    p_off = table.px.astype(np.int64) + table.py.astype(np.int64) * stride[np.clip(table.pz, 0, None)]
    n_off = table.nx.astype(np.int64) + table.ny.astype(np.int64) * stride[np.clip(table.nz, 0, None)]
    return p_off, n_off


def detect_objects(
    gray: np.ndarray, cascade: CascadeModel, interval: int = 5, min_neighbors: int = 1
) -> List[DetectionRect]:
    """Functional shorthand for ``ObjectDetector(...).detect(gray)``."""
    return ObjectDetector(cascade, interval=interval, min_neighbors=min_neighbors).detect(gray)


__all__ = ["ObjectDetector", "derive_offsets", "detect_objects"]
