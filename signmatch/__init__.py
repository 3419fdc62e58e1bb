"""
Sign recognition by edge-density template matching on a live camera stream.
"""

__version__ = "1.0.0"

from .config.settings import Config, load_config, save_config
from .core.entities import (
    BoundingBox, DetectionState, FeatureVector, Matched, MatchResult, NoMatch, Template,
)

__all__ = [
    "Config", "load_config", "save_config",
    "BoundingBox", "DetectionState", "FeatureVector", "Matched", "MatchResult", "NoMatch", "Template",
]
