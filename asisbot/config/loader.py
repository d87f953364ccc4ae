"""Configuration loading utilities."""

import json
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from loguru import logger

from asisbot.config.schema import Config

# Load .env into os.environ (won't overwrite existing env vars)
load_dotenv(override=False)


def get_config_path() -> Path:
    """Get the default configuration file path."""
    from asisbot.utils.helpers import get_data_path
    return get_data_path() / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file, then apply env-var overrides.

    Priority (highest → lowest):
        1. ASISBOT_* environment variables / .env
        2. <state_dir>/config.json
        3. Built-in defaults
    """
    path = config_path or get_config_path()

    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            config = Config.model_validate(convert_keys(data))
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Failed to load config from {path}: {e}; using defaults")
            config = Config()
    else:
        config = Config()

    _apply_env_overrides(config)
    return config


def _apply_env_overrides(config: Config) -> None:
    """Apply flat ASISBOT_* env vars on top of the loaded config."""

    # --- Generative responder ---
    if val := os.environ.get("ASISBOT_MODEL"):
        config.agent.model = val
    # Plain GROQ_API_KEY is accepted as a fallback.
    if val := os.environ.get("ASISBOT_GROQ_API_KEY") or os.environ.get("GROQ_API_KEY"):
        config.providers.groq.api_key = val
    if val := os.environ.get("ASISBOT_GROQ_API_BASE"):
        config.providers.groq.api_base = val
    if val := os.environ.get("ASISBOT_MEMORY_LIMIT"):
        config.agent.memory_limit = int(val)

    # --- Tools ---
    if val := os.environ.get("ASISBOT_BRAVE_API_KEY"):
        config.tools.search.api_key = val
        config.tools.search.provider = "brave"
    if val := os.environ.get("ASISBOT_SEARCH_PROVIDER"):
        config.tools.search.provider = val
    if val := os.environ.get("ASISBOT_TIMEZONE"):
        config.tools.clock.timezone = val

    # --- Directives ---
    if val := os.environ.get("ASISBOT_DIRECTIVE_PREFIX"):
        config.directives.prefix = val
    if val := os.environ.get("ASISBOT_STATE_PATH"):
        config.state_path = val


def save_config(config: Config, config_path: Path | None = None) -> None:
    """
    Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Optional path to save to. Uses default if not provided.
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = convert_to_camel(config.model_dump())

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def convert_keys(data: Any) -> Any:
    """Convert camelCase keys to snake_case for Pydantic."""
    if isinstance(data, dict):
        return {camel_to_snake(k): convert_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def convert_to_camel(data: Any) -> Any:
    """Convert snake_case keys to camelCase."""
    if isinstance(data, dict):
        return {snake_to_camel(k): convert_to_camel(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_to_camel(item) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    result = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            result.append("_")
        result.append(char.lower())
    return "".join(result)


def snake_to_camel(name: str) -> str:
    """Convert snake_case to camelCase."""
    components = name.split("_")
    return components[0] + "".join(x.title() for x in components[1:])
