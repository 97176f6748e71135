"""Configuration module for anchor."""

from anchor.config.loader import load_config, get_config_path
from anchor.config.schema import Config

__all__ = ["Config", "load_config", "get_config_path"]
