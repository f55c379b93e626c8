"""Configuration module for ewebridge."""

from ewebridge.config.loader import get_config_path, load_config
from ewebridge.config.schema import BridgeConfig

__all__ = ["BridgeConfig", "load_config", "get_config_path"]
