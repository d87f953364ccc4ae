"""Configuration module for asisbot."""

from asisbot.config.loader import get_config_path, load_config, save_config
from asisbot.config.schema import Config
from asisbot.config.state import BotState, BotStateStore

__all__ = ["BotState", "BotStateStore", "Config", "get_config_path", "load_config", "save_config"]
