#!/usr/bin/env python3
"""Unit tests for the flashlight transmission scheduler."""

import asyncio
from unittest.mock import MagicMock

import pytest

from morsecast.errors import (
    AlreadyTransmitting,
    DeviceUnsupported,
    PermissionDenied,
    TransmissionFailed,
)
from morsecast.transmission import TransmissionScheduler
from pymorse.timing import morse_to_timing


@pytest.fixture
def signals():
    return []


@pytest.fixture
def scheduler(loop, signals):
    scheduler = TransmissionScheduler(loop=loop)
    scheduler.set_torch_callback(signals.append)
    return scheduler


@pytest.fixture
def events():
    """'. -' at 100 ms: dit 100, letter gap 300, dah 300."""
    return morse_to_timing(". -", 100)


def make_torch(available=True, has_permission=True, grant=True):
    torch = MagicMock()
    torch.is_available.return_value = available
    torch.has_permission.return_value = has_permission
    torch.request_permission.return_value = grant
    return torch


class TestTransmit:
    """Tests for transmit_morse sequencing."""

    def test_first_signal_immediate(self, scheduler, signals, events):
        """Test the first event is applied synchronously."""
        scheduler.transmit_morse(events)
        assert signals == [True]
        assert scheduler.is_transmitting
        assert scheduler.torch_on

    def test_steps_include_buffer(self, scheduler, signals, loop, events):
        """Test each step waits the event duration plus 10 ms."""
        scheduler.transmit_morse(events)
        loop.advance(0.105)
        assert signals == [True]
        loop.advance(0.01)
        assert signals == [True, False]
        loop.advance(0.31)
        assert signals == [True, False, True]

    def test_completes_with_light_off(self, scheduler, signals, loop, events):
        """Test the light ends off and on_complete fires once."""
        on_complete = MagicMock()
        on_error = MagicMock()
        scheduler.transmit_morse(events, on_complete, on_error)
        loop.run_until_idle()

        assert signals == [True, False, True, False]
        on_complete.assert_called_once()
        on_error.assert_not_called()
        assert not scheduler.is_transmitting
        assert not scheduler.torch_on

    def test_total_time(self, scheduler, loop, events):
        """Test completion after sum of durations plus one buffer per event."""
        on_complete = MagicMock()
        scheduler.transmit_morse(events, on_complete)
        loop.advance(0.725)
        on_complete.assert_not_called()
        loop.advance(0.01)
        on_complete.assert_called_once()

    def test_empty_sequence_completes_immediately(self, scheduler, signals):
        on_complete = MagicMock()
        scheduler.transmit_morse([], on_complete)
        on_complete.assert_called_once()
        assert signals == []
        assert not scheduler.is_transmitting

    def test_already_transmitting(self, scheduler, events):
        """Test a second transmission is rejected while one runs."""
        scheduler.transmit_morse(events)
        with pytest.raises(AlreadyTransmitting):
            scheduler.transmit_morse(events)

    def test_can_transmit_again_after_completion(self, scheduler, loop, events):
        scheduler.transmit_morse(events)
        loop.run_until_idle()
        scheduler.transmit_morse(events)
        assert scheduler.is_transmitting


class TestTorchChecks:
    """Tests for availability and permission checks."""

    def test_no_torch(self, loop, events):
        scheduler = TransmissionScheduler(loop=loop)
        with pytest.raises(DeviceUnsupported):
            scheduler.transmit_morse(events)

    def test_unavailable_torch(self, loop, events):
        scheduler = TransmissionScheduler(make_torch(available=False), loop=loop)
        with pytest.raises(DeviceUnsupported):
            scheduler.transmit_morse(events)

    def test_permission_denied(self, loop, events):
        """Test a refused permission request raises PermissionDenied."""
        torch = make_torch(has_permission=False, grant=False)
        scheduler = TransmissionScheduler(torch, loop=loop)
        with pytest.raises(PermissionDenied):
            scheduler.transmit_morse(events)
        torch.set_enabled.assert_not_called()
        assert not scheduler.is_transmitting

    def test_permission_requested_once(self, loop, events):
        """Test permission is requested on first use only."""
        torch = make_torch(has_permission=False, grant=True)
        scheduler = TransmissionScheduler(torch, loop=loop)
        scheduler.transmit_morse(events)
        loop.run_until_idle()
        scheduler.transmit_morse(events)

        torch.request_permission.assert_called_once()


class TestStop:
    """Tests for stop() and release_resources()."""

    def test_stop_turns_light_off(self, scheduler, signals, loop, events):
        """Test stop forces the light off and cancels pending steps."""
        on_complete = MagicMock()
        scheduler.transmit_morse(events, on_complete)
        scheduler.stop()

        assert signals == [True, False]
        assert not scheduler.is_transmitting
        loop.advance(5.0)
        assert signals == [True, False]
        assert loop.pending == []
        on_complete.assert_not_called()

    def test_stop_is_idempotent(self, scheduler, signals, events):
        scheduler.stop()
        scheduler.transmit_morse(events)
        scheduler.stop()
        scheduler.stop()
        assert signals == [True, False]

    def test_release_drops_torch(self, scheduler, events):
        scheduler.release_resources()
        with pytest.raises(DeviceUnsupported):
            scheduler.transmit_morse(events)


class TestFailure:
    """Tests for failures in the torch driver."""

    def test_mid_sequence_failure(self, loop, events):
        """Test a failing switch stops the run and reports TransmissionFailed."""
        calls = []

        def switch(enabled):
            calls.append(enabled)
            if len(calls) == 2:
                raise RuntimeError("torch driver crashed")

        scheduler = TransmissionScheduler(loop=loop)
        scheduler.set_torch_callback(switch)
        on_complete = MagicMock()
        on_error = MagicMock()

        scheduler.transmit_morse(events, on_complete, on_error)
        loop.run_until_idle()

        on_error.assert_called_once()
        error = on_error.call_args[0][0]
        assert isinstance(error, TransmissionFailed)
        assert "torch driver crashed" in error.message
        on_complete.assert_not_called()
        assert not scheduler.is_transmitting
        # A final attempt to switch off, and nothing after it
        assert calls == [True, False, False]

    def test_failure_on_first_step(self, loop, events):
        """Test a failure on the very first switch is reported, not raised."""
        torch = make_torch()
        torch.set_enabled.side_effect = OSError("no camera")
        scheduler = TransmissionScheduler(torch, loop=loop)
        on_error = MagicMock()

        scheduler.transmit_morse(events, on_error=on_error)

        on_error.assert_called_once()
        assert not scheduler.is_transmitting
        assert loop.pending == []


class TestRealEventLoop:
    """Transmission on a real asyncio loop."""

    def test_transmits_to_completion(self):
        signals = []

        async def run():
            scheduler = TransmissionScheduler(signal_buffer_ms=1)
            scheduler.set_torch_callback(signals.append)
            done = asyncio.get_running_loop().create_future()
            scheduler.transmit_morse(
                morse_to_timing("..", 5), on_complete=lambda: done.set_result(True)
            )
            await asyncio.wait_for(done, timeout=5)

        asyncio.run(run())
        assert signals == [True, False, True, False]
