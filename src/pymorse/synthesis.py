"""Sine tone synthesis and canonical PCM WAV encoding."""

import math
import struct

import numpy as np

from .timing import TimedEvent, total_duration_ms

SAMPLE_RATE = 44100
AMPLITUDE = 0.3  # fraction of full scale, keeps the tone clear of clipping
DEFAULT_FREQUENCY = 600  # Hz
WAV_HEADER_SIZE = 44

_CHANNELS = 1
_BITS_PER_SAMPLE = 16
_FULL_SCALE = 32767


def sample_count(duration_ms: float, sample_rate: int = SAMPLE_RATE) -> int:
    """Number of whole samples that fit in *duration_ms*."""
    return math.floor(duration_ms / 1000 * sample_rate)


def generate_sine(
    frequency: float,
    n_samples: int,
    sample_rate: int = SAMPLE_RATE,
    amplitude: float = AMPLITUDE,
) -> np.ndarray:
    """Generate 16-bit sine samples starting at phase zero.

    Args:
        frequency: Tone frequency in Hz
        n_samples: Number of samples to produce
        sample_rate: Sample rate in Hz
        amplitude: Peak level as a fraction of full scale

    Returns:
        int16 array of length n_samples
    """
    t = np.arange(max(n_samples, 0)) / sample_rate
    wave = np.sin(2 * np.pi * frequency * t) * amplitude
    return np.floor(wave * _FULL_SCALE).astype(np.int16)


def wav_header(n_samples: int, sample_rate: int = SAMPLE_RATE) -> bytes:
    """Build the 44-byte RIFF/WAVE header for mono 16-bit PCM."""
    block_align = _CHANNELS * _BITS_PER_SAMPLE // 8
    byte_rate = sample_rate * block_align
    data_size = n_samples * block_align

    return struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        16,  # fmt chunk size for PCM
        1,  # PCM
        _CHANNELS,
        sample_rate,
        byte_rate,
        block_align,
        _BITS_PER_SAMPLE,
        b"data",
        data_size,
    )


def samples_to_wav_bytes(samples: np.ndarray, sample_rate: int = SAMPLE_RATE) -> bytes:
    """Wrap int16 samples in a WAV container."""
    pcm = np.asarray(samples, dtype="<i2")
    return wav_header(len(pcm), sample_rate) + pcm.tobytes()


def tone_wav(
    frequency: float,
    duration_ms: float,
    sample_rate: int = SAMPLE_RATE,
) -> bytes:
    """Render a single beep as a complete WAV file in memory."""
    samples = generate_sine(frequency, sample_count(duration_ms, sample_rate), sample_rate)
    return samples_to_wav_bytes(samples, sample_rate)


def render_events(
    events: list[TimedEvent],
    speed: float = 1.0,
    frequency: float = DEFAULT_FREQUENCY,
    sample_rate: int = SAMPLE_RATE,
) -> np.ndarray:
    """Render a whole event sequence into one sample buffer.

    The buffer is sized from the total duration up front. Signal events
    contribute sine samples, gaps contribute silence, and an event whose
    samples would run past the end of the buffer is truncated.
    """
    total_samples = sample_count(total_duration_ms(events, speed), sample_rate)
    buffer = np.zeros(total_samples, dtype=np.int16)

    position = 0
    for event in events:
        n_samples = sample_count(event.duration_ms / speed, sample_rate)
        n_samples = min(n_samples, total_samples - position)
        if n_samples <= 0:
            break
        if event.is_signal:
            buffer[position:position + n_samples] = generate_sine(
                frequency, n_samples, sample_rate
            )
        position += n_samples

    return buffer
