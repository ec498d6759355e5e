"""Configuration management for morsecast."""

import copy
import json
import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pymorse import DEFAULT_FREQUENCY, DEFAULT_TIME_UNIT

from .errors import InvalidInput
from .paths import config_dir, config_file, ensure_dir, exports_dir

DEFAULT_CONFIG = {
    "timing": {
        "time_unit_ms": DEFAULT_TIME_UNIT,
        "frequency_hz": DEFAULT_FREQUENCY,
    },
    "playback": {
        "speed": 1.0,
        "progress_interval_ms": 16,  # ~60 Hz progress updates
    },
    "flashlight": {
        "signal_buffer_ms": 10,  # extra time per step for the torch to switch
    },
    "export": {
        "directory": None,  # None = default data dir, or an absolute path
    },
}


class TimingConfig(BaseModel):
    """Base time unit and tone frequency for one conversion."""

    model_config = ConfigDict(frozen=True)

    time_unit_ms: int = Field(default=DEFAULT_TIME_UNIT, gt=0)
    frequency_hz: float = Field(default=DEFAULT_FREQUENCY, gt=0)


def get_config() -> dict:
    """Load configuration, falling back to defaults for missing keys."""
    cfg_file = config_file()

    if not cfg_file.exists():
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(cfg_file) as f:
            config = json.load(f)
    except (json.JSONDecodeError, IOError):
        return copy.deepcopy(DEFAULT_CONFIG)

    # Merge with defaults for any missing keys
    merged = copy.deepcopy(DEFAULT_CONFIG)
    for key, value in config.items():
        if isinstance(value, dict) and key in merged:
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def save_config(config: dict) -> None:
    """Save configuration to file."""
    ensure_dir(config_dir())
    with open(config_file(), "w") as f:
        json.dump(config, f, indent=2)


def get_timing_config(
    time_unit_ms: int | None = None,
    frequency_hz: float | None = None,
) -> TimingConfig:
    """Get timing configuration.

    Explicit arguments win over environment variables, which win over the
    config file.
    """
    timing = get_config().get("timing", {})

    time_unit = time_unit_ms
    if time_unit is None:
        time_unit = os.environ.get("MORSECAST_TIME_UNIT") or timing.get("time_unit_ms")
    frequency = frequency_hz
    if frequency is None:
        frequency = os.environ.get("MORSECAST_FREQUENCY") or timing.get("frequency_hz")

    try:
        return TimingConfig(time_unit_ms=time_unit, frequency_hz=frequency)
    except ValidationError as e:
        raise InvalidInput(f"Invalid timing configuration: {e}") from e


def get_playback_config() -> dict:
    """Get playback configuration."""
    return get_config().get("playback", {})


def get_flashlight_config() -> dict:
    """Get flashlight configuration."""
    return get_config().get("flashlight", {})


def get_export_dir() -> Path:
    """Directory for generated audio files."""
    directory = get_config().get("export", {}).get("directory")
    return Path(directory).expanduser() if directory else exports_dir()
