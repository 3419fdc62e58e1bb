"""Configuration management package."""

from .settings import Config, TemplateSpec, build_config, load_config, save_config
from .defaults import DEFAULT_CONFIG

__all__ = ["Config", "TemplateSpec", "build_config", "load_config", "save_config", "DEFAULT_CONFIG"]
