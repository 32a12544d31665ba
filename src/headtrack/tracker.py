"""Top-level head tracker: frames in, faces, head positions and status out."""

from collections import deque
from dataclasses import replace
import logging
import time
from typing import Callable, Optional, Protocol

import numpy as np

from headtrack.config import TrackerConfig
from headtrack.detect import CascadeModel, load_cascade
from headtrack.errors import FrameError
from headtrack.events import EventSink, NullSink, Status, StatusEvent
from headtrack.facetracker import FaceTrackingStateMachine
from headtrack.headposition import HeadPositionEstimator
from headtrack.image import average_gray
from headtrack.smoother import Smoother
from headtrack.types import DetectionMode, HeadPosition, TrackedFace

logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    """Anything that hands out RGB(A) frames; None when exhausted."""

    def read(self) -> Optional[np.ndarray]:
        ...


class HeadTracker:
    """Drives the face tracking state machine over a frame source.

    On top of the state machine this handles smoothing, the wait for a
    stable face size before calibrating the head position estimator,
    re-detection after the face is lost, and status reporting.

    Args:
        source: Frame source.
        cascade: Face cascade. Loaded from ``config.cascade_path`` (or the
            models directory) when None.
        config: Tracker settings.
        sink: Receives faces, head positions and status events.
        clock: Monotonic clock in seconds.

    Example:
        >>> tracker = HeadTracker(VideoCaptureSource(0), sink=LoggingSink())
        >>> tracker.run(max_frames=500)
    """

    def __init__(
        self,
        source: FrameSource,
        cascade: Optional[CascadeModel] = None,
        config: Optional[TrackerConfig] = None,
        sink: Optional[EventSink] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or TrackerConfig()
        if cascade is None:
            cascade = load_cascade(self.config.cascade_path)
        self._cascade = cascade
        self._source = source
        self._sink = sink or NullSink()
        self._clock = clock

        self._smoother = Smoother(self.config.smoothing_alpha, self.config.smoothing_interval_ms)
        self._face_tracker: Optional[FaceTrackingStateMachine] = None
        self._estimator: Optional[HeadPositionEstimator] = None
        self._diagonals = deque(maxlen=self.config.stable_diagonal_samples)
        self._fov: Optional[float] = None

        self._running = False
        self._source_exhausted = False
        self._content_seen = False
        self._first_run = True
        self._face_found = False
        self._detection_started: Optional[float] = None
        self._status: Optional[Status] = None
        self._last_face: Optional[TrackedFace] = None
        self._position: Optional[HeadPosition] = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def fov(self) -> Optional[float]:
        """Calibrated horizontal field of view in degrees."""
        return self._fov

    @property
    def status(self) -> Optional[Status]:
        return self._status

    @property
    def face_tracker(self) -> Optional[FaceTrackingStateMachine]:
        return self._face_tracker

    @property
    def estimator(self) -> Optional[HeadPositionEstimator]:
        return self._estimator

    @property
    def last_face(self) -> Optional[TrackedFace]:
        return self._last_face

    @property
    def position(self) -> Optional[HeadPosition]:
        return self._position

    def start(self) -> bool:
        self._running = True
        return True

    def stop(self) -> bool:
        self._running = False
        self._face_found = False
        self._set_status(Status.STOPPED)
        return True

    def run(self, max_frames: Optional[int] = None) -> int:
        """Track until the source is exhausted, ``max_frames`` or :meth:`stop`.

        Returns:
            Number of frames read.
        """
        self.start()
        frames = 0
        while self._running and (max_frames is None or frames < max_frames):
            if self.step() is None and self._source_exhausted:
                logger.info("Frame source exhausted after %d frames", frames)
                break
            frames += 1
        if self._running:
            self.stop()
        return frames

    def step(self) -> Optional[TrackedFace]:
        """Read and process one frame; None when nothing was tracked."""
        frame = self._source.read()
        self._source_exhausted = frame is None
        if frame is None:
            return None
        return self.process(frame)

    def process(self, frame: np.ndarray) -> Optional[TrackedFace]:
        """Process one frame.

        Returns None while waiting for the first frame with content. A
        malformed frame after that yields a skipped snapshot and leaves the
        tracking state untouched.
        """
        if not self._content_seen:
            try:
                level = average_gray(frame)
            except FrameError as e:
                logger.warning("Skipping malformed frame: %s", e)
                return None
            if level <= 0:
                logger.debug("Waiting for frame content")
                return None
            self._content_seen = True

        if self._face_tracker is None:
            self._face_tracker = self._create_face_tracker(self.config.face.whitebalancing)

        face = self._face_tracker.track(frame)

        if face.skipped:
            return face

        if face.mode is DetectionMode.WB:
            self._set_status(Status.WHITEBALANCE)
        elif face.mode is DetectionMode.VJ:
            self._on_detecting()
        else:
            self._detection_started = None
            if face.is_empty:
                self._on_lost()
            else:
                face = self._on_tracked(face, frame.shape[1], frame.shape[0])

        self._last_face = face
        return face

    def _create_face_tracker(self, whitebalancing: bool) -> FaceTrackingStateMachine:
        config = replace(self.config.face, whitebalancing=whitebalancing)
        return FaceTrackingStateMachine(self._cascade, config, sink=self._sink)

    def _on_detecting(self) -> None:
        now = self._clock()
        if self._detection_started is None:
            self._detection_started = now
        if (now - self._detection_started) * 1000 > self.config.hints_after_ms:
            self._set_status(Status.HINTS)
        elif self._first_run:
            self._set_status(Status.DETECTING)

    def _on_lost(self) -> None:
        if not self.config.retry_detection:
            self._set_status(Status.LOST)
            self.stop()
            return

        self._set_status(Status.REDETECTING)
        self._face_tracker = self._create_face_tracker(whitebalancing=False)
        self._face_found = False
        self._estimator = None
        self._diagonals.clear()
        self._smoother.reset()

    def _on_tracked(self, face: TrackedFace, cam_width: int, cam_height: int) -> TrackedFace:
        if not self._face_found:
            self._set_status(Status.FOUND)
            self._face_found = True
            self._first_run = False

        if self.config.smoothing:
            vector = (face.x, face.y, 0.0, face.width, face.height)
            if not self._smoother.initialized:
                self._smoother.init(vector)
            smoothed = self._smoother.smooth(vector)
            face = replace(
                face, x=smoothed.x, y=smoothed.y, width=smoothed.width, height=smoothed.height
            )

        if self.config.head_position:
            self._update_head_position(face, cam_width, cam_height)
        return face

    def _update_head_position(self, face: TrackedFace, cam_width: int, cam_height: int) -> None:
        if self._estimator is None:
            self._diagonals.append(face.diagonal)
            if len(self._diagonals) < self._diagonals.maxlen:
                return
            if max(self._diagonals) - min(self._diagonals) >= self.config.stable_diagonal_range:
                return

            head = self.config.head
            self._estimator = HeadPositionEstimator(
                face,
                cam_width,
                cam_height,
                fov=self._fov if self._fov is not None else head.fov,
                distance_to_screen_cm=head.distance_to_screen_cm,
                camera_to_screen_offset_cm=head.camera_to_screen_offset_cm,
                edge_correction=head.edge_correction,
            )
            if self._fov is None:
                self._fov = self._estimator.fov
                logger.info("Head position calibrated, field of view %.1f deg", self._fov)

        position = self._estimator.track(face)
        if position is not None:
            self._position = position
            self._sink.on_head_position(position)

    def _set_status(self, status: Status) -> None:
        if status is self._status:
            return
        self._status = status
        logger.debug("Status: %s", status.value)
        self._sink.on_status(StatusEvent.of(status))


__all__ = ["FrameSource", "HeadTracker"]
