"""Region-of-interest detection by contour shape."""
from __future__ import annotations
import logging
import math
from typing import Iterable, Optional

import cv2
import numpy as np

from .entities import BoundingBox, EdgeParams, RegionResult
from .features import edge_map

logger = logging.getLogger(__name__)


def circularity(contour: np.ndarray) -> Optional[float]:
    """4*pi*area / perimeter**2 of a closed contour, None if perimeter is 0."""
    perimeter = cv2.arcLength(contour, True)
    if perimeter <= 0:
        return None
    area = abs(cv2.contourArea(contour))
    return 4.0 * math.pi * area / (perimeter * perimeter)


def bounding_box(contour: np.ndarray) -> BoundingBox:
    x, y, w, h = cv2.boundingRect(contour)
    return BoundingBox(int(x), int(y), int(w), int(h))


def select_region(contours: Iterable[np.ndarray], circularity_threshold: float,
                  min_area: int) -> RegionResult:
    """Pick the largest compact contour box.

    A contour is kept when its box is at least ``min_area`` and its
    circularity is strictly above the threshold. Among kept boxes the first
    one with the strictly greatest area wins.
    """
    best: Optional[BoundingBox] = None
    for contour in contours:
        box = bounding_box(contour)
        if box.area < min_area:
            continue
        circ = circularity(contour)
        if circ is None:
            continue
        if circ > circularity_threshold and box.area >= min_area:
            if best is None or box.area > best.area:
                best = box

    if best is None:
        return RegionResult.none()
    return RegionResult(found=True, box=best)


def find_contours(edges: np.ndarray):
    # OpenCV 4 returns (contours, hierarchy), OpenCV 3 prepends the image
    found = cv2.findContours(edges, cv2.RETR_LIST, cv2.CHAIN_APPROX_SIMPLE)
    return found[-2]


def find_sign_region(frame: np.ndarray, params: EdgeParams,
                     circularity_threshold: float, min_area: int) -> RegionResult:
    edges = edge_map(frame, params)
    return select_region(find_contours(edges), circularity_threshold, min_area)


class RoiDetector:
    """Finds the best shape-qualified region in a frame."""

    def __init__(self, params: EdgeParams, circularity_threshold: float, min_area: int):
        self.params = params
        self.circularity_threshold = circularity_threshold
        self.min_area = min_area

    def __call__(self, frame: np.ndarray) -> RegionResult:
        region = find_sign_region(frame, self.params, self.circularity_threshold, self.min_area)
        if region.found:
            logger.debug(f"ROI candidate {region.box}")
        return region
