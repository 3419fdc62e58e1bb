"""Core recognition pipeline: entities, features, ROI, matching, debounce."""

from .entities import (
    UNKNOWN_NAME, BoundingBox, DetectionState, EdgeParams, FeatureVector,
    FrameObservation, FrameReport, Matched, MatchResult, NoMatch,
    ObservationKind, RegionResult, Template,
)
from .exceptions import (
    ApplicationError, ConfigError, FeatureExtractionError,
    SignalTransportError, TemplateLoadError, WebcamError,
)
from .features import edge_map, extract_features
from .roi import RoiDetector, circularity, find_sign_region, select_region
from .matching import TemplateMatcher, correlation, match_features
from .debounce import DebounceStateMachine, DebounceStep

__all__ = [
    "UNKNOWN_NAME", "BoundingBox", "DetectionState", "EdgeParams", "FeatureVector",
    "FrameObservation", "FrameReport", "Matched", "MatchResult", "NoMatch",
    "ObservationKind", "RegionResult", "Template",
    "ApplicationError", "ConfigError", "FeatureExtractionError",
    "SignalTransportError", "TemplateLoadError", "WebcamError",
    "edge_map", "extract_features",
    "RoiDetector", "circularity", "find_sign_region", "select_region",
    "TemplateMatcher", "correlation", "match_features",
    "DebounceStateMachine", "DebounceStep",
]
