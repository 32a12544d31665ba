"""Event sinks receiving tracking output.

A sink gets every CAMShift-tracked face, every head position estimate and
every tracker status change. Sinks are passed in explicitly; nothing here
dispatches through globals.
"""

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Callable, List, Optional, Protocol

from headtrack.types import HeadPosition, TrackedFace

logger = logging.getLogger(__name__)


class Status(str, Enum):
    """Tracker status with its user-facing message."""

    WHITEBALANCE = "whitebalance"
    DETECTING = "detecting"
    HINTS = "hints"
    FOUND = "found"
    REDETECTING = "redetecting"
    LOST = "lost"
    STOPPED = "stopped"

    @property
    def message(self) -> str:
        return _STATUS_MESSAGES[self]


_STATUS_MESSAGES = {
    Status.WHITEBALANCE: "Waiting for camera whitebalancing",
    Status.DETECTING: "Please wait while camera is detecting your face...",
    Status.HINTS: (
        "We seem to have some problems detecting your face. Please make sure that "
        "your face is well and evenly lighted, and that your camera is working."
    ),
    Status.FOUND: "Face found! Move your head!",
    Status.REDETECTING: "Lost track of face, trying to detect again..",
    Status.LOST: "Lost track of face :(",
    Status.STOPPED: "Tracking stopped",
}


@dataclass(frozen=True)
class StatusEvent:
    status: Status
    message: str

    @classmethod
    def of(cls, status: Status) -> "StatusEvent":
        return cls(status=status, message=status.message)


class EventSink(Protocol):
    """Receiver of tracking output."""

    def on_face(self, face: TrackedFace) -> None:
        ...

    def on_head_position(self, position: HeadPosition) -> None:
        ...

    def on_status(self, event: StatusEvent) -> None:
        ...


class NullSink:
    """Discards everything."""

    def on_face(self, face: TrackedFace) -> None:
        pass

    def on_head_position(self, position: HeadPosition) -> None:
        pass

    def on_status(self, event: StatusEvent) -> None:
        pass


class CallbackSink:
    """Forwards events to plain callables; missing callbacks are skipped."""

    def __init__(
        self,
        on_face: Optional[Callable[[TrackedFace], None]] = None,
        on_head_position: Optional[Callable[[HeadPosition], None]] = None,
        on_status: Optional[Callable[[StatusEvent], None]] = None,
    ):
        self._on_face = on_face
        self._on_head_position = on_head_position
        self._on_status = on_status

    def on_face(self, face: TrackedFace) -> None:
        if self._on_face is not None:
            self._on_face(face)

    def on_head_position(self, position: HeadPosition) -> None:
        if self._on_head_position is not None:
            self._on_head_position(position)

    def on_status(self, event: StatusEvent) -> None:
        if self._on_status is not None:
            self._on_status(event)


class MemorySink:
    """Keeps every event in memory, for tests and offline analysis."""

    def __init__(self):
        self.faces: List[TrackedFace] = []
        self.positions: List[HeadPosition] = []
        self.statuses: List[StatusEvent] = []

    def on_face(self, face: TrackedFace) -> None:
        self.faces.append(face)

    def on_head_position(self, position: HeadPosition) -> None:
        self.positions.append(position)

    def on_status(self, event: StatusEvent) -> None:
        self.statuses.append(event)

    def status_sequence(self) -> List[Status]:
        return [e.status for e in self.statuses]

    def clear(self) -> None:
        self.faces.clear()
        self.positions.clear()
        self.statuses.clear()


class LoggingSink:
    """Writes events to a logger."""

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.INFO):
        self._log = log or logger
        self._level = level

    def on_face(self, face: TrackedFace) -> None:
        self._log.debug(
            "face x=%.1f y=%.1f w=%.1f h=%.1f angle=%.2f",
            face.x, face.y, face.width, face.height, face.angle,
        )

    def on_head_position(self, position: HeadPosition) -> None:
        self._log.debug("head x=%.1fcm y=%.1fcm z=%.1fcm", position.x, position.y, position.z)

    def on_status(self, event: StatusEvent) -> None:
        self._log.log(self._level, "[%s] %s", event.status.value, event.message)


__all__ = [
    "Status",
    "StatusEvent",
    "EventSink",
    "NullSink",
    "CallbackSink",
    "MemorySink",
    "LoggingSink",
]
