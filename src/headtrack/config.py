"""Configuration dataclasses for the tracking pipeline.

All configs can be built from plain dictionaries or YAML files:

Example:
    >>> config = TrackerConfig.from_yaml("tracker.yaml")

    # tracker.yaml
    smoothing: true
    detection_interval_ms: 20
    face:
      whitebalancing: true
      calc_angles: false
      detector:
        interval: 5
        min_neighbors: 1
    head:
      fov: 60
      camera_to_screen_offset_cm: 11.5
"""

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar, Union

import yaml

from headtrack.errors import ConfigurationError

C = TypeVar("C")


def _check_keys(cls: Type, data: Dict[str, Any]) -> None:
    if not isinstance(data, dict):
        raise ConfigurationError(f"{cls.__name__} expects a mapping, got {type(data).__name__}")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown {cls.__name__} option(s): {', '.join(unknown)}")


def _from_yaml(cls: Type[C], yaml_path: Union[str, Path]) -> C:
    with open(yaml_path) as f:
        data = yaml.safe_load(f)
    return cls.from_dict(data or {})


@dataclass
class DetectorConfig:
    """Cascade detector settings.

    Attributes:
        interval: Intermediate scales per pyramid octave.
        min_neighbors: Minimum raw hits per reported face; 0 disables grouping.
        confidence_threshold: Candidates must score above this to start
            CAMShift tracking.
    """

    interval: int = 5
    min_neighbors: int = 1
    confidence_threshold: float = -10.0

    def __post_init__(self) -> None:
        if self.interval < 0:
            raise ConfigurationError(f"interval must be >= 0, got {self.interval}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DetectorConfig":
        _check_keys(cls, data)
        return cls(**data)

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "DetectorConfig":
        return _from_yaml(cls, yaml_path)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class FaceTrackerConfig:
    """State machine settings.

    Attributes:
        whitebalancing: Start in WB mode and wait for a stable exposure.
        whitebalance_window: Number of gray-level samples in the stability window.
        whitebalance_tolerance: Maximum gray-level spread of a stable window.
        calc_angles: Let CAMShift recover the face orientation.
        send_events: Deliver CAMShift snapshots to the event sink.
        detector: Cascade detector settings.
    """

    whitebalancing: bool = True
    whitebalance_window: int = 15
    whitebalance_tolerance: float = 2.0
    calc_angles: bool = False
    send_events: bool = True
    detector: DetectorConfig = field(default_factory=DetectorConfig)

    def __post_init__(self) -> None:
        if self.whitebalance_window < 1:
            raise ConfigurationError(
                f"whitebalance_window must be >= 1, got {self.whitebalance_window}"
            )
        if self.whitebalance_tolerance <= 0:
            raise ConfigurationError(
                f"whitebalance_tolerance must be > 0, got {self.whitebalance_tolerance}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FaceTrackerConfig":
        _check_keys(cls, data)
        data = dict(data)
        data["detector"] = DetectorConfig.from_dict(data.get("detector") or {})
        return cls(**data)

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "FaceTrackerConfig":
        return _from_yaml(cls, yaml_path)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class HeadPositionConfig:
    """Head position estimator settings.

    Attributes:
        fov: Horizontal camera field of view in degrees; estimated when None.
        distance_to_screen_cm: Assumed user distance for FOV estimation
            (60 cm when None).
        camera_to_screen_offset_cm: Camera height above the screen centre.
        edge_correction: Reconstruct faces clipped by the frame border.
    """

    fov: Optional[float] = None
    distance_to_screen_cm: Optional[float] = None
    camera_to_screen_offset_cm: float = 11.5
    edge_correction: bool = True

    def __post_init__(self) -> None:
        if self.fov is not None and not 0 < self.fov < 180:
            raise ConfigurationError(f"fov must be in (0, 180) degrees, got {self.fov}")
        if self.distance_to_screen_cm is not None and self.distance_to_screen_cm <= 0:
            raise ConfigurationError(
                f"distance_to_screen_cm must be > 0, got {self.distance_to_screen_cm}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HeadPositionConfig":
        _check_keys(cls, data)
        return cls(**data)

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "HeadPositionConfig":
        return _from_yaml(cls, yaml_path)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TrackerConfig:
    """Top-level tracker settings.

    Attributes:
        smoothing: Smooth CAMShift geometry before head position estimation.
        smoothing_alpha: Smoothing factor in (0, 1].
        retry_detection: Restart detection after losing the face instead of
            stopping.
        detection_interval_ms: Expected time between frames; the smoother
            interval is this plus 15 ms.
        head_position: Estimate head positions.
        stable_diagonal_samples: Face diagonals that must agree before the
            head position estimator is calibrated.
        stable_diagonal_range: Maximum spread of those diagonals in pixels.
        hints_after_ms: Time spent detecting before the HINTS status is sent.
        cascade_path: Cascade JSON; the models directory default when None.
        face: State machine settings.
        head: Head position settings.
    """

    smoothing: bool = True
    smoothing_alpha: float = 0.35
    retry_detection: bool = True
    detection_interval_ms: float = 20
    head_position: bool = True
    stable_diagonal_samples: int = 6
    stable_diagonal_range: float = 5.0
    hints_after_ms: float = 5000
    cascade_path: Optional[str] = None
    face: FaceTrackerConfig = field(default_factory=FaceTrackerConfig)
    head: HeadPositionConfig = field(default_factory=HeadPositionConfig)

    def __post_init__(self) -> None:
        if not 0 < self.smoothing_alpha <= 1:
            raise ConfigurationError(f"smoothing_alpha must be in (0, 1], got {self.smoothing_alpha}")
        if self.detection_interval_ms < 0:
            raise ConfigurationError(
                f"detection_interval_ms must be >= 0, got {self.detection_interval_ms}"
            )
        if self.stable_diagonal_samples < 1:
            raise ConfigurationError(
                f"stable_diagonal_samples must be >= 1, got {self.stable_diagonal_samples}"
            )

    @property
    def smoothing_interval_ms(self) -> float:
        return self.detection_interval_ms + 15

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrackerConfig":
        """Create a TrackerConfig from a dictionary (e.g. loaded from YAML).

        Raises:
            ConfigurationError: On unknown keys or invalid values.
        """
        _check_keys(cls, data)
        data = dict(data)
        data["face"] = FaceTrackerConfig.from_dict(data.get("face") or {})
        data["head"] = HeadPositionConfig.from_dict(data.get("head") or {})
        return cls(**data)

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "TrackerConfig":
        """Load a TrackerConfig from a YAML file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ConfigurationError: On unknown keys or invalid values.
        """
        return _from_yaml(cls, yaml_path)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["DetectorConfig", "FaceTrackerConfig", "HeadPositionConfig", "TrackerConfig"]
