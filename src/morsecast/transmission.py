"""Flash a timed Morse sequence on a torch."""

import asyncio
import logging
from typing import Callable

from pymorse import TimedEvent

from .devices import CallbackTorch, Torch
from .errors import (
    AlreadyTransmitting,
    DeviceUnsupported,
    ErrorKind,
    MorseError,
    PermissionDenied,
    as_morse_error,
)

log = logging.getLogger(__name__)

SIGNAL_BUFFER_MS = 10  # time allowed for the hardware to switch state


class TransmissionScheduler:
    """Switches a torch on and off following one event sequence at a time.

    Each step sets the light and schedules the next step after the event's
    duration plus a small fixed buffer. There is no drift correction.
    """

    def __init__(
        self,
        torch: Torch | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
        signal_buffer_ms: float = SIGNAL_BUFFER_MS,
    ):
        self.torch = torch
        self.signal_buffer_ms = signal_buffer_ms
        self._loop = loop
        self._permission_granted = False
        self._transmitting = False
        self._torch_on = False
        self._handle: asyncio.TimerHandle | None = None

    @property
    def is_transmitting(self) -> bool:
        return self._transmitting

    @property
    def torch_on(self) -> bool:
        return self._torch_on

    def set_torch_callback(self, callback: Callable[[bool], None]) -> None:
        """Register the function that actually switches the light."""
        self.torch = CallbackTorch(callback)
        self._permission_granted = False

    def transmit_morse(
        self,
        events: list[TimedEvent],
        on_complete: Callable[[], None] | None = None,
        on_error: Callable[[MorseError], None] | None = None,
    ) -> None:
        """Start flashing *events*.

        Raises AlreadyTransmitting, DeviceUnsupported or PermissionDenied
        before anything is switched. Failures once running are passed to
        *on_error* instead.
        """
        if self._transmitting:
            raise AlreadyTransmitting("Transmission already in progress")

        self._check_torch()

        if not events:
            if on_complete:
                on_complete()
            return

        loop = self._loop or asyncio.get_running_loop()
        self._transmitting = True
        log.debug("Transmitting %d events", len(events))
        self._step(loop, list(events), 0, on_complete, on_error)

    def stop(self) -> None:
        """Cancel pending steps and switch the light off. Safe to call repeatedly."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

        if not self._transmitting:
            return

        self._transmitting = False
        log.debug("Transmission stopped")
        try:
            self._set_torch(False)
        except Exception as e:
            log.warning("Failed to switch torch off: %s", e)

    def release_resources(self) -> None:
        self.stop()
        self.torch = None
        self._permission_granted = False

    def _check_torch(self) -> None:
        if self.torch is None or not self.torch.is_available():
            raise DeviceUnsupported("Flashlight is not available", context="Flashlight")

        if self._permission_granted:
            return
        if not (self.torch.has_permission() or self.torch.request_permission()):
            raise PermissionDenied("Camera permission not granted", context="Camera")
        self._permission_granted = True

    def _set_torch(self, enabled: bool) -> None:
        self._torch_on = enabled
        self.torch.set_enabled(enabled)

    def _step(
        self,
        loop: asyncio.AbstractEventLoop,
        events: list[TimedEvent],
        index: int,
        on_complete: Callable[[], None] | None,
        on_error: Callable[[MorseError], None] | None,
    ) -> None:
        self._handle = None
        if not self._transmitting:
            return

        finished = index >= len(events)
        try:
            self._set_torch(False if finished else events[index].is_signal)
        except Exception as e:
            self._fail(e, on_error)
            return

        if finished:
            self._transmitting = False
            log.debug("Transmission complete")
            if on_complete:
                on_complete()
            return

        self._handle = loop.call_later(
            (events[index].duration_ms + self.signal_buffer_ms) / 1000,
            self._step, loop, events, index + 1, on_complete, on_error,
        )

    def _fail(
        self,
        exc: Exception,
        on_error: Callable[[MorseError], None] | None,
    ) -> None:
        log.error("Transmission failed: %s", exc)
        self.stop()
        if on_error:
            on_error(as_morse_error(exc, ErrorKind.TRANSMISSION_FAILED, context="Flashlight"))
