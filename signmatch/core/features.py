"""Edge-density feature extraction over a fixed grid."""
from __future__ import annotations

import cv2
import numpy as np

from .entities import EdgeParams, FeatureVector
from .exceptions import FeatureExtractionError

BLUR_KERNEL = (3, 3)


def to_gray(image: np.ndarray) -> np.ndarray:
    """Return a single-channel view of a BGR (or already gray) image."""
    if image.ndim == 3 and image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    if image.ndim == 3 and image.shape[2] == 1:
        return image[:, :, 0]
    return image


def edge_map(image: np.ndarray, params: EdgeParams) -> np.ndarray:
    """Grayscale, 3x3 box blur, then Canny. Non-zero pixels are edges."""
    gray = to_gray(image)
    blurred = cv2.blur(gray, BLUR_KERNEL)
    return cv2.Canny(blurred, params.low, params.high, apertureSize=params.kernel)


def grid_fractions(edges: np.ndarray, vertical_segments: int, horizontal_segments: int) -> FeatureVector:
    """Fraction of edge pixels per grid cell, row-major.

    Cell origins step by the cell size from 0 up to ``dim - cell`` inclusive,
    so remainder pixels at the bottom/right are dropped. When the remainder is
    at least one cell wide an extra row/column of cells is visited.
    """
    rows, cols = edges.shape[:2]
    dx = cols // horizontal_segments
    dy = rows // vertical_segments
    if dx == 0 or dy == 0:
        raise FeatureExtractionError(
            f"region {cols}x{rows} is smaller than one cell of a "
            f"{horizontal_segments}x{vertical_segments} grid"
        )

    cell_area = float(dx * dy)
    fractions = []
    for y in range(0, rows - dy + 1, dy):
        for x in range(0, cols - dx + 1, dx):
            count = np.count_nonzero(edges[y:y + dy, x:x + dx])
            fractions.append(count / cell_area)
    return FeatureVector.from_values(fractions)


def extract_features(region: np.ndarray, params: EdgeParams,
                     vertical_segments: int, horizontal_segments: int) -> FeatureVector:
    """Turn an image region into its edge-density feature vector."""
    if region is None or region.size == 0:
        raise FeatureExtractionError("cannot extract features from an empty region")
    edges = edge_map(region, params)
    return grid_fractions(edges, vertical_segments, horizontal_segments)
