"""Matching engine using zero-mean normalized correlation of feature vectors."""
from __future__ import annotations
import logging
import math
from typing import Iterable, Optional

import numpy as np

from .entities import EdgeParams, FeatureVector, Matched, MatchResult, NoMatch, Template
from .features import extract_features

logger = logging.getLogger(__name__)


def correlation(a: FeatureVector, b: FeatureVector) -> Optional[float]:
    """Normalized cross correlation in [-1, 1].

    Returns None when either vector has zero variance or the lengths differ,
    since the score is undefined in both cases.
    """
    if len(a) != len(b):
        return None
    da = a.values - a.mean
    db = b.values - b.mean
    num = float(np.dot(da, db))
    denom = float(np.dot(da, da)) * float(np.dot(db, db))
    if denom == 0.0:
        return None
    return num / math.sqrt(denom)


def match_features(candidate: FeatureVector, templates: Iterable[Template]) -> MatchResult:
    """Best-scoring template, or NoMatch if nothing scores above zero."""
    best: MatchResult = NoMatch()
    for template in templates:
        score = correlation(candidate, template.features)
        if score is None:
            logger.debug(f"Skipping template '{template.name}': correlation undefined")
            continue
        if score > best.confidence:
            best = Matched(name=template.name, signal=template.signal, confidence=score)
    return best


class TemplateMatcher:
    """Scores image regions against a template library."""

    def __init__(self, templates: Iterable[Template], params: EdgeParams,
                 vertical_segments: int, horizontal_segments: int):
        self.templates = templates
        self.params = params
        self.vertical_segments = vertical_segments
        self.horizontal_segments = horizontal_segments

    def features(self, region: np.ndarray) -> FeatureVector:
        return extract_features(region, self.params, self.vertical_segments, self.horizontal_segments)

    def __call__(self, region: np.ndarray) -> MatchResult:
        return match_features(self.features(region), self.templates)
