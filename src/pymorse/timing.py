"""Compile Morse symbol strings into timed on/off events."""

from dataclasses import dataclass
from enum import Enum

DEFAULT_TIME_UNIT = 120  # ms


class EventKind(Enum):
    DIT = "dit"
    DAH = "dah"
    SYMBOL_GAP = "symbolGap"
    LETTER_GAP = "letterGap"
    WORD_GAP = "wordGap"

    @property
    def is_signal(self) -> bool:
        """True for events that switch the tone or light on."""
        return self in (EventKind.DIT, EventKind.DAH)


# Duration of each event kind in time units
UNITS = {
    EventKind.DIT: 1,
    EventKind.DAH: 3,
    EventKind.SYMBOL_GAP: 1,
    EventKind.LETTER_GAP: 3,
    EventKind.WORD_GAP: 7,
}


@dataclass(frozen=True)
class TimedEvent:
    kind: EventKind
    duration_ms: int

    @property
    def is_signal(self) -> bool:
        return self.kind.is_signal


def _event(kind: EventKind, time_unit: int) -> TimedEvent:
    return TimedEvent(kind, UNITS[kind] * time_unit)


def morse_to_timing(morse: str, time_unit: int = DEFAULT_TIME_UNIT) -> list[TimedEvent]:
    """Convert a Morse symbol string to an ordered list of timed events.

    The input is expected in the format produced by ``text_to_morse``:
    single spaces between letters and " / " between words. Exactly one gap
    event separates consecutive signals; the spaces around "/" are absorbed
    by the word gap.

    Args:
        morse: Symbol string made of ".", "-", " " and "/"
        time_unit: Length of one dit in milliseconds

    Returns:
        List of TimedEvent in transmission order
    """
    if isinstance(time_unit, bool) or not isinstance(time_unit, int) or time_unit <= 0:
        raise ValueError(f"time_unit must be a positive integer, got {time_unit!r}")

    if not morse or not morse.strip():
        return []

    events: list[TimedEvent] = []
    last = len(morse) - 1

    for i, char in enumerate(morse):
        if char in ".-":
            kind = EventKind.DIT if char == "." else EventKind.DAH
            events.append(_event(kind, time_unit))
            if i < last and morse[i + 1] not in " /":
                events.append(_event(EventKind.SYMBOL_GAP, time_unit))
        elif char == " ":
            next_is_slash = i < last and morse[i + 1] == "/"
            prev_is_slash = i > 0 and morse[i - 1] == "/"
            if not (next_is_slash or prev_is_slash):
                events.append(_event(EventKind.LETTER_GAP, time_unit))
        elif char == "/":
            events.append(_event(EventKind.WORD_GAP, time_unit))

    return events


def total_duration_ms(events: list[TimedEvent], speed: float = 1.0) -> float:
    """Sum of event durations at the given speed multiplier."""
    return sum(event.duration_ms / speed for event in events)
