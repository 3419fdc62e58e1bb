"""Pytest configuration and shared fixtures for the sign recognition pipeline.

Frames and template images are synthesized with OpenCV drawing calls so the
suite needs neither a camera nor image files on disk.
"""
import sys
import json
import logging
from pathlib import Path
from unittest.mock import Mock

import cv2
import numpy as np
import pytest

# Add the project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from signmatch.config.settings import Config, build_config
from signmatch.core.entities import EdgeParams, FeatureVector, Template


# Configure logging for tests
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler()]
)


FRAME_SHAPE = (480, 640, 3)


def blank_frame(shape=FRAME_SHAPE) -> np.ndarray:
    return np.zeros(shape, dtype=np.uint8)


def disc_frame(center=(320, 240), radius=80, shape=FRAME_SHAPE) -> np.ndarray:
    """Black frame with a filled white disc and a dark cross inside it."""
    frame = blank_frame(shape)
    cv2.circle(frame, center, radius, (255, 255, 255), -1)
    cx, cy = center
    arm = radius // 2
    cv2.line(frame, (cx - arm, cy), (cx + arm, cy), (0, 0, 0), 6)
    cv2.line(frame, (cx, cy - arm), (cx, cy + arm), (0, 0, 0), 6)
    return frame


def feature(values) -> FeatureVector:
    return FeatureVector.from_values(values)


def template(name, values, signal=None) -> Template:
    return Template(name=name, signal=signal or name.upper(), features=feature(values))


@pytest.fixture
def edge_params():
    return EdgeParams(50, 150, 3)


@pytest.fixture
def config() -> Config:
    """Configuration with small, test-friendly thresholds."""
    return build_config({
        "circularity_threshold": 0.6,
        "min_roi_area": 1000,
        "vertical_segments": 4,
        "horizontal_segments": 4,
        "counts_for_signal": 2,
        "key_poll_ms": 1,
    })


@pytest.fixture
def settings_file(tmp_path):
    """Write a settings file and return its path."""
    def _write(data, name="match-settings.json"):
        path = tmp_path / name
        if name.endswith((".yaml", ".yml")):
            import yaml
            path.write_text(yaml.safe_dump(data), encoding="utf-8")
        else:
            path.write_text(json.dumps(data), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def sign_image():
    """A 120x120 BGR reference image with a distinctive edge layout."""
    image = blank_frame((120, 120, 3))
    cv2.rectangle(image, (10, 10), (60, 60), (255, 255, 255), -1)
    cv2.circle(image, (85, 85), 25, (255, 255, 255), -1)
    return image


@pytest.fixture
def mock_opencv_capture():
    """Provide a mock OpenCV VideoCapture object."""
    cap = Mock()
    cap.isOpened.return_value = True
    cap.read.return_value = (True, blank_frame())
    cap.set.return_value = True
    cap.release.return_value = None
    return cap


@pytest.fixture
def make_disc_frame():
    return disc_frame


@pytest.fixture
def make_feature():
    return feature


@pytest.fixture
def make_template():
    return template
