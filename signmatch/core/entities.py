"""Domain entities (data-only structures) used across services."""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union, Any

import numpy as np

UNKNOWN_NAME = "unknown"


@dataclass(frozen=True, slots=True)
class EdgeParams:
    """Canny thresholds and aperture size."""
    low: int
    high: int
    kernel: int = 3


@dataclass(frozen=True, slots=True)
class BoundingBox:
    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    def fits_within(self, frame_shape: Tuple[int, ...]) -> bool:
        """True when the box lies wholly inside a frame of the given shape."""
        rows, cols = frame_shape[:2]
        return (0 <= self.x and 0 <= self.width and self.x + self.width <= cols
                and 0 <= self.y and 0 <= self.height and self.y + self.height <= rows)

    def crop(self, image: np.ndarray) -> np.ndarray:
        return image[self.y:self.y + self.height, self.x:self.x + self.width]


@dataclass(frozen=True, slots=True, eq=False)
class FeatureVector:
    """Per-cell edge fractions (row-major) and their mean."""
    values: np.ndarray
    mean: float

    def __post_init__(self):
        values = np.array(self.values, dtype=np.float64).ravel()
        values.flags.writeable = False
        object.__setattr__(self, 'values', values)
        object.__setattr__(self, 'mean', float(self.mean))

    @classmethod
    def from_values(cls, values) -> 'FeatureVector':
        arr = np.asarray(values, dtype=np.float64).ravel()
        mean = float(arr.sum() / arr.size) if arr.size else 0.0
        return cls(values=arr, mean=mean)

    def __len__(self) -> int:
        return int(self.values.size)


@dataclass(frozen=True, slots=True)
class Template:
    name: str      # human-readable sign name
    signal: str    # token sent to the transport
    features: FeatureVector


@dataclass(frozen=True, slots=True)
class Matched:
    name: str
    signal: str
    confidence: float

    @property
    def is_match(self) -> bool:
        return True

    @property
    def display_name(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class NoMatch:
    confidence: float = 0.0

    @property
    def is_match(self) -> bool:
        return False

    @property
    def display_name(self) -> str:
        return UNKNOWN_NAME


MatchResult = Union[Matched, NoMatch]


@dataclass(frozen=True, slots=True)
class RegionResult:
    found: bool
    box: Optional[BoundingBox] = None

    @classmethod
    def none(cls) -> 'RegionResult':
        return cls(found=False, box=None)


@dataclass(frozen=True, slots=True)
class DetectionState:
    """Debounce tracking state, threaded through every processed frame."""
    identity: Optional[str] = None
    count: int = 0

    @classmethod
    def idle(cls) -> 'DetectionState':
        return cls()

    @property
    def is_idle(self) -> bool:
        return self.identity is None


class ObservationKind(Enum):
    NO_REGION = "no_region"
    OUT_OF_BOUNDS = "out_of_bounds"
    MATCHED = "matched"


@dataclass(frozen=True, slots=True)
class FrameObservation:
    """What a single frame contributed to the debounce state machine."""
    kind: ObservationKind
    result: Optional[MatchResult] = None

    @classmethod
    def no_region(cls) -> 'FrameObservation':
        return cls(ObservationKind.NO_REGION)

    @classmethod
    def out_of_bounds(cls) -> 'FrameObservation':
        return cls(ObservationKind.OUT_OF_BOUNDS)

    @classmethod
    def matched(cls, result: MatchResult) -> 'FrameObservation':
        return cls(ObservationKind.MATCHED, result)


@dataclass(slots=True)
class FrameReport:
    """Outcome of one pipeline iteration, handed to the renderer."""
    frame: Any  # numpy ndarray (BGR)
    state: DetectionState
    region: RegionResult
    in_bounds: bool = False
    result: Optional[MatchResult] = None
    fired: Optional[Matched] = None
    latency_ms: float = 0.0
