"""Exception types for headtrack.

Per-frame failures (no face, empty probability mass) are reported as values,
not exceptions. Only construction and load time problems raise.
"""


class HeadtrackError(Exception):
    """Base class for headtrack errors."""


class ConfigurationError(HeadtrackError, ValueError):
    """Invalid configuration, camera geometry or model data."""


class CascadeFormatError(ConfigurationError):
    """Malformed cascade model file."""


class FrameError(HeadtrackError, ValueError):
    """Pixel buffer with an unsupported shape or dtype."""


__all__ = [
    "HeadtrackError",
    "ConfigurationError",
    "CascadeFormatError",
    "FrameError",
]
