"""Small path helpers."""

from pathlib import Path


def ensure_dir(path: Path) -> Path:
    """Create *path* (and parents) if missing and return it."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_path() -> Path:
    """Return the asisbot state directory, honouring ``ASISBOT_STATE_DIR``."""
    from asisbot.settings import get_settings

    return ensure_dir(get_settings().state_dir)
