"""Millisecond clocks for the retention window.

The buffer asks a clock for "now" on every insertion. Live recording
uses the wall clock; tests and offline replays drive a ManualClock.
"""

from __future__ import annotations

import time
from collections.abc import Callable

Clock = Callable[[], float]


def wall_clock_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


class ManualClock:
    """A clock that only moves when told to.

    Calling the instance returns the current value, so it can be passed
    anywhere a Clock is expected.
    """

    def __init__(self, now: float = 0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def set(self, now: float) -> None:
        self.now = now

    def advance(self, delta_ms: float) -> None:
        self.now += delta_ms
