"""Boosted-cascade face detection over an image pyramid."""

from headtrack.detect.cascade import (
    CascadeModel,
    Feature,
    StageClassifier,
    cascade_from_dict,
    cascade_to_dict,
    default_cascade_path,
    load_cascade,
)
from headtrack.detect.detector import ObjectDetector, detect_objects
from headtrack.detect.grouping import array_group, group_rectangles

__all__ = [
    "CascadeModel",
    "Feature",
    "StageClassifier",
    "cascade_from_dict",
    "cascade_to_dict",
    "default_cascade_path",
    "load_cascade",
    "ObjectDetector",
    "detect_objects",
    "array_group",
    "group_rectangles",
]
