"""Shared fixtures: a manually advanced event loop for timer-driven engines."""

import heapq
import itertools
import os
from unittest.mock import patch

import pytest


class FakeHandle:
    """Stand-in for asyncio.TimerHandle."""

    def __init__(self, when, callback, args):
        self.when = when
        self.callback = callback
        self.args = args
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    def cancelled(self):
        return self._cancelled


class FakeLoop:
    """Implements the call_later/time subset of an asyncio loop.

    Time only moves when a test calls advance() or run_until_idle().
    """

    def __init__(self):
        self.now = 0.0
        self._queue = []
        self._seq = itertools.count()

    def time(self):
        return self.now

    def call_later(self, delay, callback, *args):
        handle = FakeHandle(self.now + delay, callback, args)
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle))
        return handle

    @property
    def pending(self):
        return [h for _, _, h in self._queue if not h.cancelled()]

    def _run_next(self, deadline):
        while self._queue:
            when, _, handle = self._queue[0]
            if when > deadline:
                return False
            heapq.heappop(self._queue)
            if handle.cancelled():
                continue
            self.now = max(self.now, when)
            handle.callback(*handle.args)
            return True
        return False

    def advance(self, seconds):
        """Run every timer due within the next *seconds*."""
        deadline = self.now + seconds
        while self._run_next(deadline):
            pass
        self.now = deadline

    def run_until_idle(self, max_seconds=600):
        """Run timers until none are left."""
        deadline = self.now + max_seconds
        while self.pending and self._run_next(deadline):
            pass


@pytest.fixture
def loop():
    return FakeLoop()


@pytest.fixture
def temp_morsecast_dir(tmp_path):
    """Point MORSECAST_DIR at a temporary directory."""
    with patch.dict(os.environ, {"MORSECAST_DIR": str(tmp_path)}):
        yield tmp_path
