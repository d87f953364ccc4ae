"""Centralised process settings for asisbot, loaded from env / .env."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AsisbotSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ASISBOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- general ---
    app_name: str = "asisbot"
    env: str = "dev"
    debug: bool = False
    log_level: str = "INFO"

    # --- file-system paths ---
    state_dir: Path = Field(default_factory=lambda: Path.home() / ".asisbot")

    # --- worker tuning ---
    max_concurrent_workers: int = 4
    session_lock_timeout: float = 120.0


@lru_cache
def get_settings() -> AsisbotSettings:
    s = AsisbotSettings()
    s.state_dir.mkdir(parents=True, exist_ok=True)
    return s
