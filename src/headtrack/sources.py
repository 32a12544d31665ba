"""Frame sources backed by OpenCV video capture."""

import logging
from typing import Optional, Tuple, Union

import cv2
import numpy as np

from headtrack.image import from_bgr

logger = logging.getLogger(__name__)


class VideoCaptureSource:
    """Camera or video file delivering RGBA frames.

    Args:
        source: File path or camera index.
        resolution: (width, height) every frame is resized to; webcam-sized
            320x240 keeps detection fast. None keeps the capture size.

    Raises:
        IOError: If the source cannot be opened.
    """

    def __init__(self, source: Union[str, int], resolution: Optional[Tuple[int, int]] = None):
        self._capture = cv2.VideoCapture(source)
        if not self._capture.isOpened():
            raise IOError(f"Cannot open video source: {source}")
        self.resolution = resolution
        logger.info(
            "Opened %s (%dx%d capture, %.1f fps, tracking at %s)",
            source, *self.capture_size, self.fps,
            "%dx%d" % resolution if resolution else "capture size",
        )

    @property
    def fps(self) -> float:
        return float(self._capture.get(cv2.CAP_PROP_FPS))

    @property
    def capture_size(self) -> Tuple[int, int]:
        return (
            int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        )

    def read(self) -> Optional[np.ndarray]:
        """Next frame as (H, W, 4) RGBA, or None at the end of the stream."""
        ok, bgr = self._capture.read()
        if not ok:
            return None
        if self.resolution and (bgr.shape[1], bgr.shape[0]) != tuple(self.resolution):
            bgr = cv2.resize(bgr, tuple(self.resolution), interpolation=cv2.INTER_AREA)
        return from_bgr(bgr)

    def close(self) -> None:
        self._capture.release()

    def __enter__(self) -> "VideoCaptureSource":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


__all__ = ["VideoCaptureSource"]
