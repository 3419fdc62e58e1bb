"""Configuration dataclass and loading utilities.

Provides a strongly-typed configuration object that is injected into the
pipeline and services instead of module-level constants. Settings files may
be JSON, YAML or OpenCV ``FileStorage`` XML/YAML, as written by the older
``match-settings.xml`` files; their hyphenated key names (``canny-roi-low``,
``counts-for-signal``...) are accepted as well.
"""
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional
import copy, json, os, logging

import cv2
import yaml

from .defaults import DEFAULT_CONFIG, VALID_CANNY_KERNELS
from ..core.entities import EdgeParams
from ..core.exceptions import ConfigError

logger = logging.getLogger(__name__)

# Keys whose names differ beyond hyphen/underscore in legacy settings files
_LEGACY_ALIASES = {
    "minimum_roi_area": "min_roi_area",
}

_INT_KEYS = (
    "roi_canny_low", "roi_canny_high", "roi_canny_kernel", "min_roi_area",
    "match_canny_low", "match_canny_high", "match_canny_kernel",
    "vertical_segments", "horizontal_segments", "counts_for_signal",
    "camera", "baud_rate", "key_poll_ms", "quit_key",
)
_FLOAT_KEYS = ("circularity_threshold",)
_BOOL_KEYS = ("enable_file_logging", "structured_logging")

OPENCV_YAML_HEADER = "%YAML:"


@dataclass(frozen=True, slots=True)
class TemplateSpec:
    """One reference image entry from the settings file."""
    name: str
    signal: str
    image_path: str


@dataclass(slots=True)
class Config:
    # ROI identification
    roi_canny_low: int = DEFAULT_CONFIG["roi_canny_low"]
    roi_canny_high: int = DEFAULT_CONFIG["roi_canny_high"]
    roi_canny_kernel: int = DEFAULT_CONFIG["roi_canny_kernel"]
    circularity_threshold: float = DEFAULT_CONFIG["circularity_threshold"]
    min_roi_area: int = DEFAULT_CONFIG["min_roi_area"]

    # Template matching
    match_canny_low: int = DEFAULT_CONFIG["match_canny_low"]
    match_canny_high: int = DEFAULT_CONFIG["match_canny_high"]
    match_canny_kernel: int = DEFAULT_CONFIG["match_canny_kernel"]
    vertical_segments: int = DEFAULT_CONFIG["vertical_segments"]
    horizontal_segments: int = DEFAULT_CONFIG["horizontal_segments"]
    counts_for_signal: int = DEFAULT_CONFIG["counts_for_signal"]
    templates: List[TemplateSpec] = field(default_factory=list)

    # Devices
    camera: int = DEFAULT_CONFIG["camera"]
    serial_port: str = DEFAULT_CONFIG["serial_port"]
    baud_rate: int = DEFAULT_CONFIG["baud_rate"]

    # Display / loop pacing
    window_name: str = DEFAULT_CONFIG["window_name"]
    key_poll_ms: int = DEFAULT_CONFIG["key_poll_ms"]
    quit_key: int = DEFAULT_CONFIG["quit_key"]

    # Logging
    log_level: str = DEFAULT_CONFIG["log_level"]
    log_dir: str = DEFAULT_CONFIG["log_dir"]
    enable_file_logging: bool = DEFAULT_CONFIG["enable_file_logging"]
    structured_logging: bool = DEFAULT_CONFIG["structured_logging"]

    # Arbitrary extra values retained for forward compatibility
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def roi_edge_params(self) -> EdgeParams:
        return EdgeParams(self.roi_canny_low, self.roi_canny_high, self.roi_canny_kernel)

    @property
    def match_edge_params(self) -> EdgeParams:
        return EdgeParams(self.match_canny_low, self.match_canny_high, self.match_canny_kernel)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["templates"] = [
            {"name": t.name, "signal": t.signal, "image": t.image_path} for t in self.templates
        ]
        # merge extra keys at top-level for saving
        extra = d.pop("extra", {})
        d.update(extra)
        return d

    def get(self, key: str, default: Any = None) -> Any:
        if key in Config.__dataclass_fields__ and key != "extra":
            return getattr(self, key)
        return self.extra.get(key, default)

    def log_settings(self) -> None:
        """Log the effective recognition settings."""
        logger.info("ROI identification settings:")
        logger.info(f"  Circularity threshold: {self.circularity_threshold}")
        logger.info(f"  Canny interval: ({self.roi_canny_low}, {self.roi_canny_high})")
        logger.info(f"  Kernel size: {self.roi_canny_kernel}")
        logger.info(f"  Minimum area: {self.min_roi_area} pixels")
        logger.info("Template match settings:")
        logger.info(f"  Subdivision: {self.horizontal_segments}x{self.vertical_segments}")
        logger.info(f"  Canny interval: ({self.match_canny_low}, {self.match_canny_high})")
        logger.info(f"  Kernel size: {self.match_canny_kernel}")
        logger.info(f"Frames for signal: {self.counts_for_signal}")


def normalize_key(key: str) -> str:
    """Map ``canny-roi-low`` style keys onto ``roi_canny_low`` field names."""
    k = str(key).strip().lower().replace("-", "_")
    if k.startswith("canny_roi_"):
        k = "roi_canny_" + k[len("canny_roi_"):]
    elif k.startswith("canny_match_"):
        k = "match_canny_" + k[len("canny_match_"):]
    return _LEGACY_ALIASES.get(k, k)


def _node_value(node: cv2.FileNode) -> Any:
    """Convert an OpenCV storage node into plain Python values."""
    if node.isMap():
        return {key: _node_value(node.getNode(key)) for key in node.keys()}
    if node.isSeq():
        return [_node_value(node.at(i)) for i in range(node.size())]
    if node.isInt():
        return int(node.real())
    if node.isReal():
        return node.real()
    if node.isString():
        return node.string()
    return None


def _read_opencv_storage(path: str) -> Any:
    """Read a ``cv::FileStorage`` settings file (XML or ``%YAML:1.0``)."""
    fs = cv2.FileStorage(str(path), cv2.FILE_STORAGE_READ)
    try:
        if not fs.isOpened():
            raise ConfigError(f"OpenCV could not open configuration file '{path}'")
        return _node_value(fs.root())
    finally:
        fs.release()


def _is_opencv_yaml(path: str) -> bool:
    with open(path, "r", encoding="utf-8") as f:
        return f.readline().startswith(OPENCV_YAML_HEADER)


def _read_settings_file(path: str) -> Dict[str, Any]:
    suffix = Path(path).suffix.lower()
    if suffix == ".xml" or (suffix in (".yaml", ".yml") and _is_opencv_yaml(path)):
        loaded = _read_opencv_storage(path)
    else:
        with open(path, "r", encoding="utf-8") as f:
            if suffix in (".yaml", ".yml"):
                loaded = yaml.safe_load(f)
            else:
                loaded = json.load(f)
    if loaded is None:
        logger.warning(f"Configuration file '{path}' is empty, using defaults")
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"Configuration file '{path}' does not contain a mapping")
    return loaded


def _coerce_values(merged: Dict[str, Any]) -> None:
    """Coerce scalar settings, falling back to defaults on bad values."""
    for key in _INT_KEYS:
        try:
            merged[key] = int(merged[key])
        except (TypeError, ValueError):
            logger.warning(f"Setting '{key}' is not an integer: {merged[key]!r}. Using default.")
            merged[key] = DEFAULT_CONFIG[key]
    for key in _FLOAT_KEYS:
        try:
            merged[key] = float(merged[key])
        except (TypeError, ValueError):
            logger.warning(f"Setting '{key}' is not a number: {merged[key]!r}. Using default.")
            merged[key] = DEFAULT_CONFIG[key]
    for key in _BOOL_KEYS:
        value = merged[key]
        if isinstance(value, str):
            merged[key] = value.strip().lower() in ("1", "true", "yes", "on")
        else:
            merged[key] = bool(value)
    for key in ("serial_port", "window_name", "log_level", "log_dir"):
        merged[key] = str(merged[key])


def _validate_values(merged: Dict[str, Any]) -> None:
    for key in ("roi_canny_kernel", "match_canny_kernel"):
        if merged[key] not in VALID_CANNY_KERNELS:
            logger.warning(f"Setting '{key}'={merged[key]} must be one of {VALID_CANNY_KERNELS}. Using default.")
            merged[key] = DEFAULT_CONFIG[key]
    for key in ("vertical_segments", "horizontal_segments", "baud_rate", "key_poll_ms"):
        if merged[key] <= 0:
            logger.warning(f"Setting '{key}' must be positive, got {merged[key]}. Using default.")
            merged[key] = DEFAULT_CONFIG[key]
    for key in ("counts_for_signal", "min_roi_area"):
        if merged[key] < 0:
            logger.warning(f"Setting '{key}' must not be negative, got {merged[key]}. Using default.")
            merged[key] = DEFAULT_CONFIG[key]


def parse_templates(entries: Any, base_dir: Optional[Path] = None) -> List[TemplateSpec]:
    """Validate the ``templates`` list. Any malformed entry is fatal."""
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ConfigError("'templates' must be a list of {name, signal, image} entries")

    specs: List[TemplateSpec] = []
    for i, entry in enumerate(entries):
        if isinstance(entry, TemplateSpec):
            specs.append(entry)
            continue
        if not isinstance(entry, dict):
            raise ConfigError(f"Template entry #{i} is not a mapping: {entry!r}")
        missing = [k for k in ("name", "signal", "image")
                   if k not in entry or entry[k] is None or str(entry[k]) == ""]
        if missing:
            raise ConfigError(f"Template entry #{i} is missing {', '.join(missing)}")
        signal = str(entry["signal"])
        if not signal.isascii():
            raise ConfigError(f"Template entry #{i} has a non-ASCII signal {signal!r}")
        image = Path(str(entry["image"]))
        if base_dir is not None and not image.is_absolute():
            image = base_dir / image
        specs.append(TemplateSpec(name=str(entry["name"]), signal=signal,
                                  image_path=str(image)))
    return specs


def build_config(data: Dict[str, Any], base_dir: Optional[Path] = None) -> Config:
    """Merge a raw settings mapping with defaults into a ``Config``."""
    normalized = {normalize_key(k): v for k, v in data.items()}
    merged = {**copy.deepcopy(DEFAULT_CONFIG), **normalized}

    _coerce_values(merged)
    _validate_values(merged)
    templates = parse_templates(merged.pop("templates"), base_dir)

    fields = set(Config.__dataclass_fields__) - {"extra", "templates"}
    extra = {k: v for k, v in merged.items() if k not in fields}
    if extra:
        logger.info(f"Found extra configuration keys: {list(extra.keys())}")

    return Config(**{k: merged[k] for k in fields}, templates=templates, extra=extra)


def load_config(path: str = "match-settings.json") -> Config:
    """Load configuration from a JSON, YAML or OpenCV storage (XML) file.

    A missing file yields the defaults. A file that cannot be parsed, or
    whose template list is malformed, raises ``ConfigError``.
    """
    data: Dict[str, Any] = {}
    base_dir: Optional[Path] = None

    if os.path.isfile(path):
        base_dir = Path(path).resolve().parent
        try:
            data = _read_settings_file(path)
            logger.info(f"Successfully loaded configuration from '{path}'")
        except (json.JSONDecodeError, yaml.YAMLError, cv2.error) as e:
            raise ConfigError(f"Failed to parse configuration file '{path}': {e}") from e
        except PermissionError as e:
            raise ConfigError(f"Permission denied reading configuration file '{path}'") from e
    else:
        logger.info(f"Configuration file '{path}' does not exist. Using defaults.")

    return build_config(data, base_dir)


def save_config(cfg: Config, path: str = "match-settings.json") -> None:
    """Save configuration to a JSON file."""
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(cfg.to_dict(), f, indent=2, ensure_ascii=False)
        logger.info(f"Configuration saved successfully to '{path}'")
    except OSError as e:
        logger.error(f"Error saving configuration file '{path}': {e}")
