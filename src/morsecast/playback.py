"""Live playback of timed Morse events with pause, resume and seek.

The engine runs on an asyncio event loop without threads. Every event is
one ``call_later`` step: signal events start a freshly synthesized tone,
gap events only wait. Each step re-checks the transport before touching the
device, so cancelling the pending handle is enough to make pause and stop
take effect immediately.
"""

import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Callable

from pymorse import DEFAULT_FREQUENCY, TimedEvent, tone_wav, total_duration_ms

from . import export
from .devices import Sound, ToneDevice
from .errors import InvalidInput

log = logging.getLogger(__name__)

PROGRESS_INTERVAL_MS = 16


class Transport(Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


class PlaybackEngine:
    """Plays one event sequence at a time through a tone device.

    Args:
        device: Tone output; None plays silently (timing and progress only)
        frequency: Tone frequency in Hz
        loop: Event loop to schedule on (default: the running loop at start)
        progress_interval_ms: How often progress is reported while playing
    """

    def __init__(
        self,
        device: ToneDevice | None = None,
        frequency: float = DEFAULT_FREQUENCY,
        loop: asyncio.AbstractEventLoop | None = None,
        progress_interval_ms: float = PROGRESS_INTERVAL_MS,
    ):
        self.device = device
        self.frequency = frequency
        self.progress_interval_ms = progress_interval_ms
        self._loop = loop
        self._reset()

    def _reset(self) -> None:
        self._transport = Transport.STOPPED
        self._active_loop: asyncio.AbstractEventLoop | None = None
        self._events: list[TimedEvent] = []
        self._speed = 1.0
        self._index = 0
        self._accumulated_ms = 0.0
        self._total_ms = 0.0
        self._item_started_ms = 0.0
        self._paused_at_ms = 0.0
        self._step_handle: asyncio.TimerHandle | None = None
        self._progress_handle: asyncio.TimerHandle | None = None
        self._sound: Sound | None = None
        self._on_progress: Callable[[float], None] | None = None
        self._on_complete: Callable[[], None] | None = None

    # -- State ---------------------------------------------------------------

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def current_event_index(self) -> int:
        return self._index

    @property
    def accumulated_elapsed_ms(self) -> float:
        return self._accumulated_ms

    @property
    def total_duration_ms(self) -> float:
        return self._total_ms

    @property
    def speed(self) -> float:
        return self._speed

    def is_playing(self) -> bool:
        return self._transport is Transport.PLAYING

    def is_paused(self) -> bool:
        return self._transport is Transport.PAUSED

    def get_progress(self) -> float:
        """Fraction of the sequence played so far, between 0 and 1."""
        if self._transport is Transport.STOPPED or self._total_ms <= 0:
            return 0.0

        now = self._paused_at_ms if self._transport is Transport.PAUSED else self._now()
        # Clamp to the event's length so timer lag never overshoots
        elapsed = min(max(now - self._item_started_ms, 0.0), self._current_duration_ms())
        progress = (self._accumulated_ms + elapsed) / self._total_ms
        return min(max(progress, 0.0), 1.0)

    # -- Transport -----------------------------------------------------------

    def start(
        self,
        events: list[TimedEvent],
        speed: float = 1.0,
        on_progress: Callable[[float], None] | None = None,
        on_complete: Callable[[], None] | None = None,
    ) -> None:
        """Start playing *events* from the beginning.

        A session that is still playing or paused is torn down first.
        Raises InvalidInput for an empty sequence or a speed outside 0.5-2.0.
        """
        export.validate_sequence(events, speed)

        if self._transport is not Transport.STOPPED:
            log.debug("Stopping previous playback session")
            self.stop()

        self._active_loop = self._loop or asyncio.get_running_loop()
        self._events = list(events)
        self._speed = speed
        self._total_ms = total_duration_ms(self._events, speed)
        self._on_progress = on_progress
        self._on_complete = on_complete
        self._transport = Transport.PLAYING

        log.debug(
            "Playing %d events (%.0f ms at %.2fx)", len(self._events), self._total_ms, speed
        )
        self._schedule_progress()
        self._play_current()

    def pause(self) -> None:
        """Halt playback, keeping the position. No-op unless playing."""
        if self._transport is not Transport.PLAYING:
            return

        self._transport = Transport.PAUSED
        self._paused_at_ms = self._now()
        self._cancel_step()
        self._release_tone()
        log.debug("Paused at event %d", self._index)

    def resume(self) -> None:
        """Continue after pause. The interrupted event restarts from its beginning."""
        if self._transport is not Transport.PAUSED:
            return

        self._transport = Transport.PLAYING
        log.debug("Resuming at event %d", self._index)
        self._play_current()

    def seek(self, position: float) -> None:
        """Jump to *position* (0 to 1) of the total duration.

        Playback continues from the new event if it was playing; a paused
        session stays paused. Ignored when nothing is loaded.
        """
        if not 0 <= position <= 1:
            raise InvalidInput("Position must be between 0 and 1")

        if self._transport is Transport.STOPPED:
            log.debug("Seek ignored, nothing is playing")
            return

        was_playing = self._transport is Transport.PLAYING
        self.pause()

        target_ms = position * self._total_ms
        elapsed_ms = 0.0
        for index, event in enumerate(self._events):
            duration_ms = event.duration_ms / self._speed
            if elapsed_ms + duration_ms >= target_ms:
                break
            elapsed_ms += duration_ms
        else:
            index = len(self._events)

        self._index = index
        self._accumulated_ms = elapsed_ms
        self._item_started_ms = self._paused_at_ms = self._now()
        log.debug("Seek to %.3f -> event %d", position, index)

        if was_playing:
            self._transport = Transport.PLAYING
            self._play_current()

    def stop(self) -> None:
        """Cancel everything and return to STOPPED. Safe to call repeatedly."""
        self._cancel_step()
        if self._progress_handle is not None:
            self._progress_handle.cancel()
        self._release_tone()
        if self._transport is not Transport.STOPPED:
            log.debug("Playback stopped")
        self._reset()

    def release_resources(self) -> None:
        self.stop()

    def generate_audio_file(
        self,
        events: list[TimedEvent],
        speed: float = 1.0,
        output_dir: Path | None = None,
    ) -> Path:
        """Render *events* to a WAV file at this engine's frequency."""
        return export.generate_audio_file(events, speed, self.frequency, output_dir)

    # -- Emission ------------------------------------------------------------

    def _now(self) -> float:
        return self._active_loop.time() * 1000

    def _current_duration_ms(self) -> float:
        if self._index >= len(self._events):
            return 0.0
        return self._events[self._index].duration_ms / self._speed

    def _play_current(self) -> None:
        if self._transport is not Transport.PLAYING:
            return

        if self._index >= len(self._events):
            self._finish()
            return

        event = self._events[self._index]
        duration_ms = event.duration_ms / self._speed
        self._item_started_ms = self._now()

        if event.is_signal:
            self._start_tone(duration_ms)

        self._step_handle = self._active_loop.call_later(duration_ms / 1000, self._event_done)

    def _event_done(self) -> None:
        self._step_handle = None
        if self._transport is not Transport.PLAYING:
            return

        self._release_tone()
        self._accumulated_ms += self._current_duration_ms()
        self._index += 1
        self._play_current()

    def _finish(self) -> None:
        on_progress, on_complete = self._on_progress, self._on_complete
        self.stop()
        log.debug("Playback complete")

        if on_progress:
            on_progress(1.0)
        if on_complete:
            on_complete()

    def _cancel_step(self) -> None:
        if self._step_handle is not None:
            self._step_handle.cancel()
            self._step_handle = None

    def _schedule_progress(self) -> None:
        self._progress_handle = self._active_loop.call_later(
            self.progress_interval_ms / 1000, self._sample_progress
        )

    def _sample_progress(self) -> None:
        self._progress_handle = None
        if self._transport is Transport.STOPPED:
            return

        try:
            if self._transport is Transport.PLAYING and self._on_progress:
                self._on_progress(self.get_progress())
        finally:
            # The callback may have stopped or restarted the session
            if self._transport is not Transport.STOPPED and self._progress_handle is None:
                self._schedule_progress()

    # -- Tone device ---------------------------------------------------------

    def _start_tone(self, duration_ms: float) -> None:
        if self.device is None:
            return

        try:
            self._sound = self.device.load(tone_wav(self.frequency, duration_ms))
            self._sound.start()
        except Exception as e:
            # One dropped beep should not end the whole sequence
            log.warning("Tone playback failed, continuing: %s", e)
            self._release_tone()

    def _release_tone(self) -> None:
        sound, self._sound = self._sound, None
        if sound is None:
            return

        try:
            sound.stop()
            sound.unload()
        except Exception as e:
            log.warning("Failed to release tone: %s", e)
