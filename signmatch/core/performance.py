"""Lightweight timing helpers for the frame loop."""

import time
import logging
from collections import deque
from typing import Deque, Optional

logger = logging.getLogger(__name__)


class PerformanceTimer:
    """Context manager for timing operations."""

    def __init__(self, operation_name: str, log_level: int = logging.DEBUG):
        self.operation_name = operation_name
        self.log_level = log_level
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.end_time = time.perf_counter()
        logger.log(self.log_level, f"{self.operation_name} took {self.duration_ms:.2f} ms")

    @property
    def duration(self) -> float:
        """Get operation duration in seconds."""
        if self.end_time is None or self.start_time is None:
            return 0.0
        return self.end_time - self.start_time

    @property
    def duration_ms(self) -> float:
        return self.duration * 1000.0


class FpsCounter:
    """Rolling frames-per-second estimate over the last ``window`` ticks."""

    def __init__(self, window: int = 30):
        self._ticks: Deque[float] = deque(maxlen=window)

    def tick(self, now: Optional[float] = None) -> float:
        self._ticks.append(time.perf_counter() if now is None else now)
        return self.fps

    @property
    def fps(self) -> float:
        if len(self._ticks) < 2:
            return 0.0
        elapsed = self._ticks[-1] - self._ticks[0]
        return (len(self._ticks) - 1) / elapsed if elapsed > 0 else 0.0
