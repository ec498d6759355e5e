"""pymorse - Morse code encoding, timing and tone synthesis."""

from .codes import (
    MORSE_CODE_MAP,
    ValidationResult,
    supported_characters,
    text_to_morse,
    validate_text,
)
from .synthesis import (
    AMPLITUDE,
    DEFAULT_FREQUENCY,
    SAMPLE_RATE,
    WAV_HEADER_SIZE,
    render_events,
    samples_to_wav_bytes,
    tone_wav,
    wav_header,
)
from .timing import (
    DEFAULT_TIME_UNIT,
    EventKind,
    TimedEvent,
    morse_to_timing,
    total_duration_ms,
)

__version__ = "0.1.0"
__all__ = [
    "MORSE_CODE_MAP",
    "ValidationResult",
    "supported_characters",
    "text_to_morse",
    "validate_text",
    "AMPLITUDE",
    "DEFAULT_FREQUENCY",
    "SAMPLE_RATE",
    "WAV_HEADER_SIZE",
    "render_events",
    "samples_to_wav_bytes",
    "tone_wav",
    "wav_header",
    "DEFAULT_TIME_UNIT",
    "EventKind",
    "TimedEvent",
    "morse_to_timing",
    "total_duration_ms",
]
