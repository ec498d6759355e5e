"""Render a timed event sequence to a WAV file."""

import logging
from datetime import datetime
from pathlib import Path

from pymorse import DEFAULT_FREQUENCY, TimedEvent, render_events, samples_to_wav_bytes

from .config import get_export_dir
from .errors import GenerationFailed, InvalidInput, StorageFull, is_storage_error
from .paths import ensure_dir

log = logging.getLogger(__name__)

MIN_SPEED = 0.5
MAX_SPEED = 2.0


def validate_sequence(events: list[TimedEvent], speed: float) -> None:
    """Reject an empty sequence or a speed outside [MIN_SPEED, MAX_SPEED]."""
    if not events:
        raise InvalidInput("No timings provided")
    if not MIN_SPEED <= speed <= MAX_SPEED:
        raise InvalidInput(f"Speed must be between {MIN_SPEED} and {MAX_SPEED}")


def export_filename(now: datetime | None = None) -> str:
    """File name for an export made at *now*: morse_YYYYMMDD_HHMMSS.wav."""
    now = now or datetime.now()
    return f"morse_{now.strftime('%Y%m%d_%H%M%S')}.wav"


def generate_audio_file(
    events: list[TimedEvent],
    speed: float = 1.0,
    frequency: float = DEFAULT_FREQUENCY,
    output_dir: Path | None = None,
    now: datetime | None = None,
) -> Path:
    """Synthesize the whole sequence and save it as a mono 16-bit WAV.

    Args:
        events: Compiled timing events
        speed: Speed multiplier (0.5 to 2.0)
        frequency: Tone frequency in Hz
        output_dir: Directory to write to (default: configured export dir)
        now: Timestamp used for the file name (default: current time)

    Returns:
        Path to the written file
    """
    validate_sequence(events, speed)

    try:
        samples = render_events(events, speed, frequency)
        wav = samples_to_wav_bytes(samples)

        directory = ensure_dir(output_dir or get_export_dir())
        path = directory / export_filename(now)
        path.write_bytes(wav)
    except Exception as e:
        log.error("Failed to generate audio file: %s", e)
        if is_storage_error(e):
            raise StorageFull("Insufficient storage space available", context="Audio export") from e
        raise GenerationFailed("Audio file generation failed", context="Audio export") from e

    log.info("Wrote %d samples to %s", len(samples), path)
    return path
