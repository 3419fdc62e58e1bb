"""Frame pipeline orchestration.

One iteration: acquire frame -> ROI detector -> bounds check -> feature
extraction + matching -> debounce -> signal dispatch -> render. Everything
runs on the calling thread; the key poll timeout is the only pacing and the
only cancellation point.
"""
from __future__ import annotations
import logging
from typing import Callable, List, Optional, Protocol, Tuple

import numpy as np

from ..config.settings import Config
from ..core.debounce import DebounceStateMachine
from ..core.entities import (
    DetectionState, FrameObservation, FrameReport, MatchResult, RegionResult,
)
from ..core.logging_config import FrameContext
from ..core.matching import TemplateMatcher
from ..core.performance import FpsCounter, PerformanceTimer
from ..core.roi import RoiDetector
from .annotation_service import NO_KEY

logger = logging.getLogger(__name__)

FPS_LOG_INTERVAL = 100


class FrameSource(Protocol):
    def read(self) -> Tuple[bool, Optional[np.ndarray]]: ...


class SignalTransport(Protocol):
    def send(self, token: str) -> None: ...


class Renderer(Protocol):
    def render(self, report: FrameReport) -> None: ...
    def poll_key(self, timeout_ms: int) -> int: ...


class FramePipeline:
    def __init__(self, cfg: Config, templates, frame_source: FrameSource,
                 transport: SignalTransport, renderer: Optional[Renderer] = None,
                 detector: Optional[Callable[[np.ndarray], RegionResult]] = None,
                 matcher: Optional[Callable[[np.ndarray], MatchResult]] = None):
        self.cfg = cfg
        self.frame_source = frame_source
        self.transport = transport
        self.renderer = renderer
        self.detector = detector or RoiDetector(
            cfg.roi_edge_params, cfg.circularity_threshold, cfg.min_roi_area)
        self.matcher = matcher or TemplateMatcher(
            templates, cfg.match_edge_params, cfg.vertical_segments, cfg.horizontal_segments)
        self.debounce = DebounceStateMachine(cfg.counts_for_signal)
        self._listeners: List[Callable[[FrameReport], None]] = []
        self._running = False
        self._fps = FpsCounter()

    def add_listener(self, cb: Callable[[FrameReport], None]):
        self._listeners.append(cb)

    def _region_is_usable(self, region: RegionResult) -> bool:
        # a region narrower than the grid leaves zero-sized cells
        box = region.box
        return (box.width >= self.cfg.horizontal_segments
                and box.height >= self.cfg.vertical_segments)

    def process_frame(self, frame: np.ndarray, state: DetectionState) -> FrameReport:
        """Run the recognition core on one frame and advance ``state``."""
        with PerformanceTimer("process_frame") as timer:
            region = self.detector(frame)
            in_bounds = False
            result: Optional[MatchResult] = None

            if not region.found:
                observation = FrameObservation.no_region()
            elif not region.box.fits_within(frame.shape):
                logger.debug(f"ROI {region.box} extends outside the frame, skipped")
                observation = FrameObservation.out_of_bounds()
            elif not self._region_is_usable(region):
                logger.debug(f"ROI {region.box} is smaller than the feature grid, skipped")
                observation = FrameObservation.out_of_bounds()
            else:
                in_bounds = True
                result = self.matcher(region.box.crop(frame))
                observation = FrameObservation.matched(result)

            step = self.debounce.step(state, observation)
            if step.fired:
                logger.info(f"sending signal for {step.signal.name}")
                self.transport.send(step.signal.signal)

        return FrameReport(frame=frame, state=step.state, region=region, in_bounds=in_bounds,
                           result=result, fired=step.signal, latency_ms=timer.duration_ms)

    def _notify(self, report: FrameReport):
        for cb in self._listeners:
            try:
                cb(report)
            except Exception as e:
                logger.error(f"Error in frame listener: {e}")

    def stop(self):
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def run(self, state: Optional[DetectionState] = None,
            max_frames: Optional[int] = None) -> DetectionState:
        """Blocking main loop. Returns the final detection state.

        Stops on the quit key, on ``stop()``, after ``max_frames`` frames, or
        when the frame source fails (there is no reconnect).
        """
        state = state or DetectionState.idle()
        self._running = True
        frame_id = 0
        logger.info("beginning main loop")
        try:
            while self._running:
                if max_frames is not None and frame_id >= max_frames:
                    break
                ok, frame = self.frame_source.read()
                if not ok or frame is None:
                    logger.error("Frame source stopped delivering frames, leaving main loop")
                    break
                frame_id += 1

                with FrameContext(frame_id):
                    report = self.process_frame(frame, state)
                    state = report.state
                    self._notify(report)

                    fps = self._fps.tick()
                    if frame_id % FPS_LOG_INTERVAL == 0:
                        logger.debug(f"{fps:.1f} fps")

                    if self.renderer is not None:
                        self.renderer.render(report)
                        key = self.renderer.poll_key(self.cfg.key_poll_ms)
                        if key != NO_KEY and (key & 0xFF) == self.cfg.quit_key:
                            logger.info("quitting!")
                            break
        finally:
            self._running = False
        return state
