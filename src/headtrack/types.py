"""Value types shared across the tracking pipeline."""

from dataclasses import dataclass, replace
from enum import Enum
import math
from typing import Optional


class DetectionMode(str, Enum):
    """State of the face tracking state machine.

    - WB: waiting for the camera whitebalance to settle
    - VJ: cascade (Viola-Jones style) detection
    - CS: CAMShift colour tracking
    """

    WB = "WB"
    VJ = "VJ"
    CS = "CS"


@dataclass
class Rect:
    """Axis-aligned rectangle (x, y = top-left corner) in pixels."""

    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def diagonal(self) -> float:
        return math.hypot(self.width, self.height)

    def floored(self) -> "Rect":
        return Rect(
            int(math.floor(self.x)),
            int(math.floor(self.y)),
            int(math.floor(self.width)),
            int(math.floor(self.height)),
        )

    def copy(self) -> "Rect":
        return replace(self)


@dataclass
class DetectionRect:
    """Cascade hit (or grouped cluster of hits) in input-frame pixels.

    Attributes:
        x: Left edge.
        y: Top edge.
        width: Window width.
        height: Window height.
        confidence: Cumulative sum of the last cascade stage.
        neighbors: Number of raw hits merged into this rectangle.
    """

    x: float
    y: float
    width: float
    height: float
    confidence: float = 0.0
    neighbors: int = 1

    def to_rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class TrackedRect:
    """CAMShift result; x, y is the centre of the tracked object."""

    x: int
    y: int
    width: int
    height: int
    angle: float


@dataclass(frozen=True)
class TrackedFace:
    """Snapshot produced by one tracking cycle.

    Attributes:
        x: Horizontal centre of the face in pixels.
        y: Vertical centre of the face in pixels.
        width: Face width in pixels (0 when nothing is tracked).
        height: Face height in pixels (0 when nothing is tracked).
        angle: Orientation in radians, [0, pi).
        confidence: Detector confidence; fixed to 1 while CAMShift tracks,
            0 when nothing was found.
        mode: State that produced this snapshot.
        elapsed_ms: Wall-clock duration of the cycle in milliseconds.
        whitebalance: Average gray level (only set in WB mode).
        skipped: The frame was malformed and not processed; the snapshot
            carries no information about the face.
    """

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    angle: float = 0.0
    confidence: float = 0.0
    mode: DetectionMode = DetectionMode.VJ
    elapsed_ms: float = 0.0
    whitebalance: Optional[float] = None
    skipped: bool = False

    @property
    def is_empty(self) -> bool:
        """True when the snapshot carries no usable geometry."""
        return self.width == 0 or self.height == 0

    @property
    def diagonal(self) -> float:
        return math.hypot(self.width, self.height)


@dataclass(frozen=True)
class HeadPosition:
    """Head position in centimetres relative to the centre of the screen."""

    x: float
    y: float
    z: float


__all__ = [
    "DetectionMode",
    "Rect",
    "DetectionRect",
    "TrackedRect",
    "TrackedFace",
    "HeadPosition",
]
