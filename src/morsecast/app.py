"""Application facade: one playback engine and one torch scheduler per process."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from pymorse import TimedEvent, morse_to_timing, text_to_morse, validate_text

from .config import TimingConfig
from .devices import ToneDevice, Torch
from .errors import MorseError
from .playback import PROGRESS_INTERVAL_MS, PlaybackEngine
from .transmission import SIGNAL_BUFFER_MS, TransmissionScheduler

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Conversion:
    text: str
    morse: str
    events: list[TimedEvent]
    unsupported_chars: list[str]


class MorseApp:
    """Wires the converter to the audio and light outputs.

    The two engines are independent: playing and flashing the same sequence
    at once is allowed, but they are scheduled separately and may drift.
    """

    def __init__(
        self,
        timing: TimingConfig | None = None,
        tone_device: ToneDevice | None = None,
        torch: Torch | None = None,
        progress_interval_ms: float = PROGRESS_INTERVAL_MS,
        signal_buffer_ms: float = SIGNAL_BUFFER_MS,
        loop=None,
    ):
        self.timing = timing or TimingConfig()
        self.playback = PlaybackEngine(
            device=tone_device,
            frequency=self.timing.frequency_hz,
            loop=loop,
            progress_interval_ms=progress_interval_ms,
        )
        self.transmitter = TransmissionScheduler(
            torch=torch, loop=loop, signal_buffer_ms=signal_buffer_ms
        )

    def convert(self, text: str) -> Conversion:
        """Encode *text* and compile it with the configured time unit."""
        morse = text_to_morse(text)
        events = morse_to_timing(morse, self.timing.time_unit_ms)
        unsupported = validate_text(text).unsupported_chars
        if unsupported:
            log.info("Dropping unsupported characters: %s", "".join(unsupported))
        return Conversion(text, morse, events, unsupported)

    def play(
        self,
        events: list[TimedEvent],
        speed: float = 1.0,
        on_progress: Callable[[float], None] | None = None,
        on_complete: Callable[[], None] | None = None,
    ) -> None:
        self.playback.start(events, speed, on_progress, on_complete)

    def export(
        self,
        events: list[TimedEvent],
        speed: float = 1.0,
        output_dir: Path | None = None,
    ) -> Path:
        return self.playback.generate_audio_file(events, speed, output_dir)

    def flash(
        self,
        events: list[TimedEvent],
        on_complete: Callable[[], None] | None = None,
        on_error: Callable[[MorseError], None] | None = None,
    ) -> None:
        self.transmitter.transmit_morse(events, on_complete, on_error)

    def enter_background(self) -> None:
        """Host lost the foreground: timers can no longer be trusted, stop both outputs."""
        log.info("Entering background, stopping playback and transmission")
        self.playback.stop()
        self.transmitter.stop()

    def close(self) -> None:
        self.playback.release_resources()
        self.transmitter.release_resources()
