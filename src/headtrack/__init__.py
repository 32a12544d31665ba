"""headtrack - face detection and head tracking.

A boosted-cascade face detector seeds a CAMShift colour tracker; the tracked
face is smoothed and converted into a head position relative to the screen.

Example:
    >>> from headtrack import HeadTracker, VideoCaptureSource, LoggingSink
    >>> tracker = HeadTracker(VideoCaptureSource(0, (320, 240)), sink=LoggingSink())
    >>> tracker.run()
"""

from headtrack.camshift import CamShiftTracker, ColorHistogram
from headtrack.config import DetectorConfig, FaceTrackerConfig, HeadPositionConfig, TrackerConfig
from headtrack.detect import CascadeModel, ObjectDetector, detect_objects, load_cascade
from headtrack.errors import CascadeFormatError, ConfigurationError, FrameError, HeadtrackError
from headtrack.events import (
    CallbackSink,
    EventSink,
    LoggingSink,
    MemorySink,
    NullSink,
    Status,
    StatusEvent,
)
from headtrack.facetracker import FaceTrackingStateMachine
from headtrack.headposition import HeadPositionEstimator
from headtrack.smoother import Smoother, SmoothVector
from headtrack.sources import VideoCaptureSource
from headtrack.tracker import FrameSource, HeadTracker
from headtrack.types import (
    DetectionMode,
    DetectionRect,
    HeadPosition,
    Rect,
    TrackedFace,
    TrackedRect,
)

__version__ = "0.1.0"

__all__ = [
    "CamShiftTracker",
    "ColorHistogram",
    "DetectorConfig",
    "FaceTrackerConfig",
    "HeadPositionConfig",
    "TrackerConfig",
    "CascadeModel",
    "ObjectDetector",
    "detect_objects",
    "load_cascade",
    "CascadeFormatError",
    "ConfigurationError",
    "FrameError",
    "HeadtrackError",
    "CallbackSink",
    "EventSink",
    "LoggingSink",
    "MemorySink",
    "NullSink",
    "Status",
    "StatusEvent",
    "FaceTrackingStateMachine",
    "HeadPositionEstimator",
    "Smoother",
    "SmoothVector",
    "VideoCaptureSource",
    "FrameSource",
    "HeadTracker",
    "DetectionMode",
    "DetectionRect",
    "HeadPosition",
    "Rect",
    "TrackedFace",
    "TrackedRect",
]
