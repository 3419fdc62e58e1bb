"""Default configuration values."""

from typing import Any, Dict

DEFAULT_CONFIG: Dict[str, Any] = {
    # ROI identification
    "roi_canny_low": 50,
    "roi_canny_high": 150,
    "roi_canny_kernel": 3,
    "circularity_threshold": 0.7,
    "min_roi_area": 2500,

    # Template matching
    "match_canny_low": 50,
    "match_canny_high": 150,
    "match_canny_kernel": 3,
    "vertical_segments": 8,
    "horizontal_segments": 8,

    # Frames a sign must be held before the signal is sent
    "counts_for_signal": 5,

    # Ordered list of {"name", "signal", "image"} entries
    "templates": [],

    # Devices
    "camera": 0,
    "serial_port": "/dev/ttyACM0",
    "baud_rate": 9600,

    # Display / loop pacing
    "window_name": "signmatch",
    "key_poll_ms": 10,
    "quit_key": 27,  # ESC

    # Debug and Logging Settings
    "log_level": "INFO",
    "log_dir": "logs",
    "enable_file_logging": False,
    "structured_logging": False,
}

VALID_CANNY_KERNELS = (3, 5, 7)
