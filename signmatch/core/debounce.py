"""Frame-over-frame debounce of match results.

The state is an explicit ``DetectionState`` value owned by the caller; the
machine itself only holds the threshold. Transitions per processed frame:

* no region found          -> idle
* region out of bounds     -> unchanged
* region matched nothing   -> unchanged (a running streak survives)
* same identity as tracked -> count + 1
* different identity       -> tracking(new identity, 0)

The signal fires when the count becomes equal to the threshold, so a streak
fires at most once.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

from .entities import DetectionState, FrameObservation, Matched, ObservationKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DebounceStep:
    state: DetectionState
    signal: Optional[Matched] = None

    @property
    def fired(self) -> bool:
        return self.signal is not None


class DebounceStateMachine:
    def __init__(self, threshold: int):
        if threshold < 0:
            raise ValueError(f"threshold must be non-negative, got {threshold}")
        self.threshold = threshold

    def step(self, state: DetectionState, observation: FrameObservation) -> DebounceStep:
        if observation.kind is ObservationKind.NO_REGION:
            return DebounceStep(DetectionState.idle())

        if observation.kind is ObservationKind.OUT_OF_BOUNDS:
            return DebounceStep(state)

        result = observation.result
        if result is None or not result.is_match:
            return DebounceStep(state)

        if result.name == state.identity:
            new_state = DetectionState(state.identity, state.count + 1)
        else:
            if not state.is_idle:
                logger.debug(f"Identity changed {state.identity} -> {result.name}")
            new_state = DetectionState(result.name, 0)

        if new_state.count == self.threshold:
            return DebounceStep(new_state, signal=result)
        return DebounceStep(new_state)
