#!/usr/bin/env python3
"""Unit tests for pymorse.synthesis - sine tones and WAV encoding."""

import struct
from io import BytesIO

import numpy as np
from scipy.io import wavfile

from pymorse.synthesis import (
    AMPLITUDE,
    SAMPLE_RATE,
    WAV_HEADER_SIZE,
    generate_sine,
    render_events,
    sample_count,
    samples_to_wav_bytes,
    tone_wav,
    wav_header,
)
from pymorse.timing import EventKind, TimedEvent, morse_to_timing


class TestSampleCount:
    """Tests for sample_count."""

    def test_whole_second(self):
        assert sample_count(1000) == 44100

    def test_rounds_down(self):
        """Test partial samples are dropped."""
        assert sample_count(1.5) == 66
        assert sample_count(0.01) == 0


class TestGenerateSine:
    """Tests for generate_sine."""

    def test_length_and_dtype(self):
        samples = generate_sine(600, 1000)
        assert len(samples) == 1000
        assert samples.dtype == np.int16

    def test_starts_at_zero_phase(self):
        """Test the first sample is silence."""
        assert generate_sine(600, 10)[0] == 0

    def test_peak_within_amplitude(self):
        """Test the tone stays at 30% of full scale."""
        samples = generate_sine(600, SAMPLE_RATE)
        limit = int(AMPLITUDE * 32767) + 1
        assert samples.max() <= limit
        assert samples.min() >= -limit
        assert samples.max() > 0.29 * 32767

    def test_zero_samples(self):
        assert len(generate_sine(600, 0)) == 0


class TestWavHeader:
    """Tests for wav_header."""

    def test_header_layout(self):
        """Test the canonical 44-byte PCM header fields."""
        header = wav_header(100)
        assert len(header) == WAV_HEADER_SIZE == 44

        fields = struct.unpack("<4sI4s4sIHHIIHH4sI", header)
        (riff, chunk_size, wave, fmt, fmt_size, audio_format, channels,
         rate, byte_rate, block_align, bits, data, data_size) = fields
        assert riff == b"RIFF"
        assert wave == b"WAVE"
        assert fmt == b"fmt "
        assert data == b"data"
        assert fmt_size == 16
        assert audio_format == 1
        assert channels == 1
        assert rate == 44100
        assert byte_rate == 88200
        assert block_align == 2
        assert bits == 16
        assert data_size == 200
        assert chunk_size == 36 + 200


class TestSamplesToWavBytes:
    """Tests for samples_to_wav_bytes and tone_wav."""

    def test_readable_by_scipy(self):
        """Test output parses as a standard WAV file."""
        samples = generate_sine(600, 500)
        rate, data = wavfile.read(BytesIO(samples_to_wav_bytes(samples)))
        assert rate == 44100
        assert data.dtype == np.int16
        np.testing.assert_array_equal(data, samples)

    def test_little_endian_samples(self):
        """Test samples follow the header as little-endian int16."""
        wav = samples_to_wav_bytes(np.array([1, -2], dtype=np.int16))
        assert wav[44:] == b"\x01\x00\xfe\xff"

    def test_tone_wav_length(self):
        """Test a 500 ms tone has the expected number of samples."""
        wav = tone_wav(600, 500)
        assert len(wav) == 44 + 22050 * 2


class TestRenderEvents:
    """Tests for render_events."""

    def test_buffer_size_matches_total(self):
        """Test the buffer is sized from the total duration."""
        events = morse_to_timing("... --- ...", 120)
        total_ms = sum(e.duration_ms for e in events)
        assert len(render_events(events)) == sample_count(total_ms)

    def test_speed_shortens_buffer(self):
        events = morse_to_timing(".-", 100)
        assert len(render_events(events, speed=2.0)) == sample_count(250)

    def test_gaps_are_silent(self):
        """Test gap samples are zero and signal samples are not."""
        events = morse_to_timing(". .", 100)
        samples = render_events(events)
        dit = sample_count(100)
        assert np.any(samples[:dit] != 0)
        assert np.all(samples[dit:dit + sample_count(300)] == 0)
        assert np.any(samples[dit + sample_count(300):] != 0)

    def test_each_tone_restarts_phase(self):
        """Test every signal event starts from phase zero."""
        events = morse_to_timing("..", 100)
        samples = render_events(events)
        second = 2 * sample_count(100)
        np.testing.assert_array_equal(
            samples[second:second + 50], generate_sine(600, 50)
        )

    def test_length_fixed_by_total(self):
        """Test per-event rounding never changes the precomputed length."""
        events = [TimedEvent(EventKind.DIT, 1)] * 3
        samples = render_events(events, speed=1.5)
        assert len(samples) == sample_count(3 / 1.5)

    def test_frequency(self):
        """Test the rendered tone has the requested frequency."""
        samples = render_events([TimedEvent(EventKind.DAH, 1000)], frequency=1000)
        spectrum = np.abs(np.fft.rfft(samples.astype(float)))
        peak_hz = np.argmax(spectrum) * SAMPLE_RATE / len(samples)
        assert abs(peak_hz - 1000) < 2
