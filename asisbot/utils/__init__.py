"""Utility functions for asisbot."""

from asisbot.utils.helpers import ensure_dir, get_data_path

__all__ = ["ensure_dir", "get_data_path"]
