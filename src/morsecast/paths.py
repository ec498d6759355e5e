"""Where morsecast keeps its files.

Everything lives under MORSECAST_DIR when it is set, otherwise in the
platformdirs locations for the user. The environment is read on every
call so tests can redirect it.
"""

import os
from pathlib import Path

from platformdirs import user_cache_dir, user_config_dir, user_data_dir

_APP_NAME = "morsecast"


def _override_root() -> Path | None:
    val = os.environ.get("MORSECAST_DIR")
    return Path(val) if val else None


def _app_dir(subdir: str, default: str) -> Path:
    root = _override_root()
    return root / subdir if root else Path(default)


def config_dir() -> Path:
    return _app_dir("config", user_config_dir(_APP_NAME))


def config_file() -> Path:
    return config_dir() / "config.json"


def data_dir() -> Path:
    return _app_dir("data", user_data_dir(_APP_NAME))


def exports_dir() -> Path:
    """Default target for generated WAV files."""
    return data_dir() / "exports"


def cache_dir() -> Path:
    return _app_dir("cache", user_cache_dir(_APP_NAME))


def tones_dir() -> Path:
    """Scratch space for the per-beep WAVs played during live playback."""
    return cache_dir() / "tones"


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path
