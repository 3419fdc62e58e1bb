"""Webcam service for synchronous frame acquisition."""

import cv2
import logging
from typing import Optional, Tuple

import numpy as np

from ..core.exceptions import WebcamError

logger = logging.getLogger(__name__)


class WebcamService:
    """Blocking, one-frame-per-request camera wrapper.

    The capture buffer is limited to a single frame so each ``read`` returns
    the most recent image rather than a stale queued one.
    """

    def __init__(self, camera_index: int = 0, buffer_size: int = 1):
        """Initialize webcam service.

        Args:
            camera_index: Camera device index
            buffer_size: Number of frames the driver may queue
        """
        self.camera_index = camera_index
        self.buffer_size = buffer_size
        self._capture: Optional[cv2.VideoCapture] = None
        self._frames_read = 0

    def open(self) -> None:
        """Open the camera.

        Raises:
            WebcamError: If the device cannot be opened.
        """
        if self.is_opened():
            logger.warning("Camera already open")
            return

        capture = cv2.VideoCapture(self.camera_index)
        if not capture.isOpened():
            capture.release()
            raise WebcamError(f"could not open camera {self.camera_index}")

        capture.set(cv2.CAP_PROP_BUFFERSIZE, self.buffer_size)
        self._capture = capture
        self._frames_read = 0
        logger.info(f"opened camera {self.camera_index}")

    def is_opened(self) -> bool:
        return self._capture is not None and self._capture.isOpened()

    def read(self) -> Tuple[bool, Optional[np.ndarray]]:
        """Read the next frame.

        Returns:
            ``(True, frame)`` on success, ``(False, None)`` otherwise
        """
        if not self.is_opened():
            return False, None

        ok, frame = self._capture.read()
        if not ok or frame is None:
            logger.warning("Failed to read frame from camera")
            return False, None

        if self._frames_read == 0:
            logger.info(f"image is {frame.shape[0]}x{frame.shape[1]}")
        self._frames_read += 1
        return True, frame

    @property
    def frames_read(self) -> int:
        return self._frames_read

    def close(self) -> None:
        """Release camera resources."""
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info(f"released camera {self.camera_index}")

    def __enter__(self) -> 'WebcamService':
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
