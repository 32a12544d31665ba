"""Face tracking state machine.

Three modes, entered in order:

- WB: wait until the camera whitebalance has settled (the average gray
  level of the last frames stays within a small band).
- VJ: run the cascade detector on every frame until a candidate is good
  enough to seed CAMShift.
- CS: follow the face with CAMShift.

There are no return edges inside the machine; callers go back to detection
with :meth:`FaceTrackingStateMachine.reset` after losing the face.
"""

from collections import deque
from dataclasses import replace
import logging
import time
from typing import Callable, Dict, Optional, Sequence

import numpy as np

from headtrack.camshift import CamShiftTracker
from headtrack.config import FaceTrackerConfig
from headtrack.detect import CascadeModel, ObjectDetector
from headtrack.errors import ConfigurationError, FrameError
from headtrack.events import EventSink, NullSink
from headtrack.image import average_gray, grayscale, validate_frame
from headtrack.steps import processing_step
from headtrack.types import DetectionMode, DetectionRect, TrackedFace

logger = logging.getLogger(__name__)


def best_candidate(candidates: Sequence[DetectionRect]) -> Optional[DetectionRect]:
    """Highest-confidence candidate; the earliest one wins ties."""
    best = None
    for candidate in candidates:
        if best is None or candidate.confidence > best.confidence:
            best = candidate
    return best


class FaceTrackingStateMachine:
    """Switches between whitebalance wait, cascade detection and CAMShift.

    Args:
        cascade: Face cascade; may be None when ``detector`` is given.
        config: State machine settings.
        sink: Receives CAMShift snapshots when ``config.send_events`` is set.
        detector: Detector override (anything with ``detect(gray)``).
        camshift: CAMShift tracker override.
        clock: Monotonic clock in seconds, used for ``elapsed_ms``.

    Example:
        >>> machine = FaceTrackingStateMachine(load_cascade())
        >>> for frame in frames:
        ...     face = machine.track(frame)
        ...     if face.mode is DetectionMode.CS and not face.is_empty:
        ...         print(face.x, face.y)
    """

    def __init__(
        self,
        cascade: Optional[CascadeModel],
        config: Optional[FaceTrackerConfig] = None,
        sink: Optional[EventSink] = None,
        detector: Optional[ObjectDetector] = None,
        camshift: Optional[CamShiftTracker] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.config = config or FaceTrackerConfig()
        if detector is None:
            if cascade is None:
                raise ConfigurationError("Either a cascade or a detector is required")
            detector = ObjectDetector(
                cascade,
                interval=self.config.detector.interval,
                min_neighbors=self.config.detector.min_neighbors,
            )
        self._detector = detector
        self._camshift = camshift or CamShiftTracker(calc_angles=self.config.calc_angles)
        self._sink = sink or NullSink()
        self._clock = clock

        self._mode = DetectionMode.WB if self.config.whitebalancing else DetectionMode.VJ
        self._whitebalances = deque(maxlen=self.config.whitebalance_window)
        self._step_timings: Dict[str, float] = {}
        self._current = TrackedFace(mode=self._mode)

    @property
    def mode(self) -> DetectionMode:
        return self._mode

    @property
    def current(self) -> TrackedFace:
        """Snapshot produced by the last :meth:`track` call."""
        return self._current

    @property
    def step_timings(self) -> Dict[str, float]:
        """Duration in ms of the last run of each processing step."""
        return dict(self._step_timings)

    def reset(self, mode: DetectionMode = DetectionMode.VJ) -> None:
        """Restart from ``mode``, typically after CAMShift lost the face."""
        logger.info("Resetting face tracker to %s (was %s)", mode.value, self._mode.value)
        self._mode = mode
        self._whitebalances.clear()

    def track(self, frame: np.ndarray) -> TrackedFace:
        """Process one RGB(A) frame.

        Never raises for bad frames: a malformed buffer yields an empty
        snapshot tagged with the current mode.
        """
        start = self._clock()
        try:
            validate_frame(frame)
            if self._mode is DetectionMode.WB:
                face = self._check_whitebalance(frame)
            elif self._mode is DetectionMode.VJ:
                face = self._detect(frame)
            else:
                face = self._track_camshift(frame)
        except FrameError as e:
            logger.warning("Skipping malformed frame: %s", e)
            face = TrackedFace(mode=self._mode, skipped=True)

        face = replace(face, elapsed_ms=(self._clock() - start) * 1000)
        self._current = face

        if face.mode is DetectionMode.CS and not face.skipped and self.config.send_events:
            self._sink.on_face(face)
        return face

    @processing_step("whitebalance", DetectionMode.WB, summary="Wait for a stable average gray level")
    def _check_whitebalance(self, frame: np.ndarray) -> TrackedFace:
        level = average_gray(frame)
        self._whitebalances.append(level)

        if len(self._whitebalances) == self._whitebalances.maxlen:
            spread = max(self._whitebalances) - min(self._whitebalances)
            if spread < self.config.whitebalance_tolerance:
                logger.info("Whitebalance stable (spread %.2f), starting face detection", spread)
                self._mode = DetectionMode.VJ

        return TrackedFace(mode=DetectionMode.WB, whitebalance=level)

    @processing_step(
        "detection",
        DetectionMode.VJ,
        summary="Cascade face detection over an image pyramid",
        algorithm="ccv boosted cascade",
        after=["whitebalance"],
    )
    def _detect(self, frame: np.ndarray) -> TrackedFace:
        candidates = self._detector.detect(grayscale(frame))
        candidate = best_candidate(candidates)
        if candidate is None:
            return TrackedFace(mode=DetectionMode.VJ)

        rect = candidate.to_rect()
        cx, cy = rect.center
        face = TrackedFace(
            x=cx,
            y=cy,
            width=candidate.width,
            height=candidate.height,
            angle=0.0,
            confidence=candidate.confidence,
            mode=DetectionMode.VJ,
        )

        if candidate.confidence > self.config.detector.confidence_threshold:
            seed = rect.floored()
            self._camshift.init_tracker(frame, seed)
            self._mode = DetectionMode.CS
            logger.info(
                "Face detected at %s (confidence %.2f, %d candidates), switching to CAMShift",
                seed, candidate.confidence, len(candidates),
            )
        return face

    @processing_step(
        "camshift",
        DetectionMode.CS,
        summary="Colour histogram tracking of the detected face",
        algorithm="CAMShift",
        after=["detection"],
    )
    def _track_camshift(self, frame: np.ndarray) -> TrackedFace:
        obj = self._camshift.track(frame)
        if obj is None or obj.width == 0 or obj.height == 0:
            return TrackedFace(mode=DetectionMode.CS)

        return TrackedFace(
            x=obj.x,
            y=obj.y,
            width=obj.width,
            height=obj.height,
            angle=obj.angle,
            confidence=1.0,
            mode=DetectionMode.CS,
        )


__all__ = ["FaceTrackingStateMachine", "best_candidate"]
