"""Frame annotation, display and key polling."""
from __future__ import annotations
import logging
import time

import cv2
import numpy as np

from ..core.entities import FrameReport

logger = logging.getLogger(__name__)

BOX_COLOR = (50, 0, 0)
LABEL_COLOR = (0, 0, 255)
NO_KEY = -1


class AnnotationService:
    """Draws the detected sign region on frames and shows them in a window.

    In headless mode nothing is displayed; ``poll_key`` then just sleeps for
    the timeout so the loop keeps the same pacing.
    """

    def __init__(self, window_name: str = "signmatch", headless: bool = False):
        self.window_name = window_name
        self.headless = headless
        self._window_open = False

    def annotate(self, report: FrameReport) -> np.ndarray:
        """Draw the ROI and its match label when the region was usable."""
        frame = report.frame
        if not (report.region.found and report.in_bounds and report.result is not None):
            return frame

        box = report.region.box
        cv2.rectangle(frame, (box.x, box.y), (box.x + box.width, box.y + box.height), BOX_COLOR, 3)
        cv2.putText(frame, report.result.display_name, (box.x, box.y),
                    cv2.FONT_HERSHEY_SIMPLEX, 1, LABEL_COLOR, 2)
        return frame

    def show(self, frame: np.ndarray) -> None:
        if self.headless:
            return
        if not self._window_open:
            cv2.namedWindow(self.window_name)
            self._window_open = True
        cv2.imshow(self.window_name, frame)

    def render(self, report: FrameReport) -> None:
        self.show(self.annotate(report))

    def poll_key(self, timeout_ms: int) -> int:
        """Wait up to ``timeout_ms`` for a key press, NO_KEY if none."""
        if self.headless:
            time.sleep(max(timeout_ms, 0) / 1000.0)
            return NO_KEY
        return cv2.waitKey(timeout_ms)

    def close(self) -> None:
        if self._window_open:
            try:
                cv2.destroyWindow(self.window_name)
            except cv2.error as e:
                logger.debug(f"Window already gone: {e}")
            self._window_open = False
