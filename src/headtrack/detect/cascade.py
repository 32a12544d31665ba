"""Boosted cascade model: data types, columnar tables and JSON loading.

The on-disk layout is the ccv/headtrackr JavaScript cascade format::

    {
      "count": <stages>, "width": 20, "height": 20,
      "stage_classifier": [
        {"count": <features>, "threshold": -0.48,
         "feature": [{"size": 3, "px": [...], "py": [...], "pz": [...],
                      "nx": [...], "ny": [...], "nz": [...]}, ...],
         "alpha": [a0_fail, a0_pass, a1_fail, a1_pass, ...]},
        ...
      ]
    }

``pz``/``nz`` address one of the three pyramid levels an octave reads from
(0 = full, 1 = half, 2 = quarter resolution); ``-1`` marks an unused slot.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np

from headtrack.errors import CascadeFormatError
from headtrack.paths import CASCADE_FILENAME, get_cascade_path

logger = logging.getLogger(__name__)

# Number of pyramid levels a single octave addresses.
LEVELS_PER_OCTAVE = 3


@dataclass(frozen=True)
class Feature:
    """Pixel-comparison feature.

    The feature "passes" when every positive sample is brighter than every
    negative sample.
    """

    px: Tuple[int, ...]
    py: Tuple[int, ...]
    pz: Tuple[int, ...]
    nx: Tuple[int, ...]
    ny: Tuple[int, ...]
    nz: Tuple[int, ...]

    @property
    def size(self) -> int:
        return len(self.px)


@dataclass(frozen=True)
class StageClassifier:
    """One cascade stage: weighted features and a rejection threshold.

    Attributes:
        threshold: Windows whose stage sum falls below this are rejected.
        features: Stage features.
        alpha: Flat ``(fail, pass)`` weight pairs, two per feature.
    """

    threshold: float
    features: Tuple[Feature, ...]
    alpha: Tuple[float, ...]

    @property
    def count(self) -> int:
        return len(self.features)


@dataclass(frozen=True)
class StageTable:
    """Columnar view of a stage, arrays shaped (features, samples)."""

    threshold: float
    px: np.ndarray
    py: np.ndarray
    pz: np.ndarray
    nx: np.ndarray
    ny: np.ndarray
    nz: np.ndarray
    alpha: np.ndarray  # (features, 2)


@dataclass(frozen=True)
class CascadeModel:
    """Immutable pre-trained cascade.

    Attributes:
        width: Detector window width in full-resolution pixels.
        height: Detector window height in full-resolution pixels.
        stages: Ordered stage classifiers.
    """

    width: int
    height: int
    stages: Tuple[StageClassifier, ...]

    @property
    def feature_count(self) -> int:
        return sum(stage.count for stage in self.stages)

    @cached_property
    def tables(self) -> Tuple[StageTable, ...]:
        """Columnar stage tables, compiled once and never mutated."""
        return tuple(_compile_stage(stage) for stage in self.stages)


def _compile_stage(stage: StageClassifier) -> StageTable:
    n = stage.count
    width = max((f.size for f in stage.features), default=1)
    arrays = {}
    for name in ("px", "py", "nx", "ny"):
        arrays[name] = np.zeros((n, width), dtype=np.int32)
    for name in ("pz", "nz"):
        arrays[name] = np.full((n, width), -1, dtype=np.int32)

    for k, feature in enumerate(stage.features):
        for name in ("px", "py", "pz", "nx", "ny", "nz"):
            values = getattr(feature, name)
            arrays[name][k, : len(values)] = values

    for arr in arrays.values():
        arr.setflags(write=False)
    alpha = np.asarray(stage.alpha, dtype=np.float64).reshape(n, 2)
    alpha.setflags(write=False)
    return StageTable(threshold=float(stage.threshold), alpha=alpha, **arrays)


def cascade_from_dict(data: Dict[str, Any], strict: bool = True) -> CascadeModel:
    """Build and validate a CascadeModel from its JSON dictionary.

    Args:
        data: Parsed cascade JSON.
        strict: Raise on sample coordinates outside the detector window.
            When False such coordinates are clamped and a warning is logged.

    Raises:
        CascadeFormatError: If the data is malformed.
    """
    try:
        width = int(data["width"])
        height = int(data["height"])
        raw_stages = data["stage_classifier"]
    except (KeyError, TypeError, ValueError) as e:
        raise CascadeFormatError(f"Cascade is missing required fields: {e}") from e

    if width <= 0 or height <= 0:
        raise CascadeFormatError(f"Invalid detector window {width}x{height}")
    if not raw_stages:
        raise CascadeFormatError("Cascade has no stage classifiers")
    if "count" in data and int(data["count"]) != len(raw_stages):
        raise CascadeFormatError(
            f"Cascade declares {data['count']} stages but has {len(raw_stages)}"
        )

    stages = []
    clamped = 0
    for j, raw in enumerate(raw_stages):
        try:
            raw_features = raw["feature"]
            alpha = tuple(float(a) for a in raw["alpha"])
            threshold = float(raw["threshold"])
        except (KeyError, TypeError, ValueError) as e:
            raise CascadeFormatError(f"Stage {j}: malformed stage ({e})") from e

        if "count" in raw and int(raw["count"]) != len(raw_features):
            raise CascadeFormatError(
                f"Stage {j}: declares {raw['count']} features but has {len(raw_features)}"
            )
        if len(alpha) != 2 * len(raw_features):
            raise CascadeFormatError(
                f"Stage {j}: expected {2 * len(raw_features)} alpha values, got {len(alpha)}"
            )

        features = []
        for k, raw_feature in enumerate(raw_features):
            feature, n_clamped = _parse_feature(raw_feature, width, height, strict, f"stage {j} feature {k}")
            clamped += n_clamped
            features.append(feature)
        stages.append(StageClassifier(threshold=threshold, features=tuple(features), alpha=alpha))

    if clamped:
        logger.warning("Clamped %d out-of-window cascade sample coordinates", clamped)

    return CascadeModel(width=width, height=height, stages=tuple(stages))


def _parse_feature(
    raw: Dict[str, Any], width: int, height: int, strict: bool, where: str
) -> Tuple[Feature, int]:
    try:
        values = {
            name: [int(round(float(v))) for v in raw[name]]
            for name in ("px", "py", "pz", "nx", "ny", "nz")
        }
    except (KeyError, TypeError, ValueError) as e:
        raise CascadeFormatError(f"{where}: malformed feature ({e})") from e

    size = len(values["px"])
    if "size" in raw and int(raw["size"]) != size:
        raise CascadeFormatError(f"{where}: size {raw['size']} does not match {size} samples")
    if size == 0 or any(len(v) != size for v in values.values()):
        raise CascadeFormatError(f"{where}: sample arrays must be non-empty and equal length")
    if values["pz"][0] < 0 or values["nz"][0] < 0:
        raise CascadeFormatError(f"{where}: first positive and negative samples must be used")

    clamped = 0
    for x_key, y_key, z_key in (("px", "py", "pz"), ("nx", "ny", "nz")):
        xs, ys, zs = values[x_key], values[y_key], values[z_key]
        for i, z in enumerate(zs):
            if z == -1:
                continue
            if z < -1 or z >= LEVELS_PER_OCTAVE:
                raise CascadeFormatError(f"{where}: invalid pyramid level {z}")
            limit_x = max(width >> z, 1)
            limit_y = max(height >> z, 1)
            if 0 <= xs[i] < limit_x and 0 <= ys[i] < limit_y:
                continue
            if strict:
                raise CascadeFormatError(
                    f"{where}: sample ({xs[i]}, {ys[i]}) outside {limit_x}x{limit_y} window at level {z}"
                )
            xs[i] = min(max(xs[i], 0), limit_x - 1)
            ys[i] = min(max(ys[i], 0), limit_y - 1)
            clamped += 1

    feature = Feature(**{name: tuple(v) for name, v in values.items()})
    return feature, clamped


def cascade_to_dict(cascade: CascadeModel) -> Dict[str, Any]:
    """Serialize a CascadeModel to the JSON dictionary layout."""
    return {
        "count": len(cascade.stages),
        "width": cascade.width,
        "height": cascade.height,
        "stage_classifier": [
            {
                "count": stage.count,
                "threshold": stage.threshold,
                "feature": [
                    {
                        "size": f.size,
                        "px": list(f.px),
                        "py": list(f.py),
                        "pz": list(f.pz),
                        "nx": list(f.nx),
                        "ny": list(f.ny),
                        "nz": list(f.nz),
                    }
                    for f in stage.features
                ],
                "alpha": list(stage.alpha),
            }
            for stage in cascade.stages
        ],
    }


def default_cascade_path() -> Path:
    """Cascade used when no explicit path is given, see :mod:`headtrack.paths`."""
    return get_cascade_path()


def load_cascade(path: Optional[Union[str, Path]] = None, strict: bool = True) -> CascadeModel:
    """Load a cascade model from JSON.

    Args:
        path: Cascade file. Defaults to :func:`default_cascade_path`.
        strict: See :func:`cascade_from_dict`.

    Raises:
        FileNotFoundError: If the file does not exist.
        CascadeFormatError: If the file is not a valid cascade.
    """
    path = Path(path) if path is not None else default_cascade_path()
    if not path.exists():
        raise FileNotFoundError(
            f"Cascade model not found at {path}. "
            "Place a ccv-format face cascade JSON there or pass an explicit path."
        )

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise CascadeFormatError(f"Cascade file {path} is not valid JSON: {e}") from e

    cascade = cascade_from_dict(data, strict=strict)
    logger.info(
        "Loaded cascade %s (%dx%d, %d stages, %d features)",
        path, cascade.width, cascade.height, len(cascade.stages), cascade.feature_count,
    )
    return cascade


__all__ = [
    "CASCADE_FILENAME",
    "Feature",
    "StageClassifier",
    "StageTable",
    "CascadeModel",
    "cascade_from_dict",
    "cascade_to_dict",
    "default_cascade_path",
    "load_cascade",
]
