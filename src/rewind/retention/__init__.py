"""Retention subpackage: the age-bounded event buffer and its clocks."""

from rewind.retention.buffer import DEFAULT_MAX_AGE_MS, RetentionBuffer
from rewind.retention.clock import Clock, ManualClock, wall_clock_ms

__all__ = [
    "Clock",
    "DEFAULT_MAX_AGE_MS",
    "ManualClock",
    "RetentionBuffer",
    "wall_clock_ms",
]
