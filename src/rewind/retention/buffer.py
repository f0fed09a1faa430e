"""Age-bounded event buffer whose front is always a valid replay start.

Events older than the window are pruned after every insertion, but the
newest full snapshot preceding the window is kept as index 0 so the
retained slice can always be replayed from the beginning. The retained
span may therefore exceed max_age_ms, bounded by the capture layer's
snapshot interval.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Literal

from rewind.models.event import Event, EventKind
from rewind.retention.clock import Clock, wall_clock_ms

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_MS = 30000

UnanchoredPolicy = Literal["keep", "clear"]


def _is_anchor(event: Event) -> bool:
    return getattr(event, "kind", None) == EventKind.FULL_SNAPSHOT


def _in_window(event: Event, cutoff: float) -> bool:
    """Whether event is inside the window. Non-numeric timestamps never are."""
    ts: Any = getattr(event, "timestamp", None)
    if isinstance(ts, bool) or not isinstance(ts, (int, float)) or math.isnan(ts):
        return False
    return ts >= cutoff


class RetentionBuffer:
    """Ordered, age-bounded sequence of events.

    Insertion order is chronological order; the single producer is
    expected to deliver non-decreasing timestamps. Not thread-safe: the
    owning engine serializes all access.

    Args:
        max_age_ms: Retention window in milliseconds, measured against
            clock() at insertion time. Must be a positive integer.
        clock: Callable returning "now" in milliseconds.
        unanchored_policy: What to do when pruning drops events and no
            full snapshot remains anywhere. "keep" retains the in-window
            incremental-only slice (reported by is_anchored()); "clear"
            empties the buffer.
    """

    def __init__(
        self,
        max_age_ms: int = DEFAULT_MAX_AGE_MS,
        clock: Clock = wall_clock_ms,
        unanchored_policy: UnanchoredPolicy = "keep",
    ) -> None:
        if isinstance(max_age_ms, bool) or not isinstance(max_age_ms, int) or max_age_ms <= 0:
            raise ValueError(f"max_age_ms must be a positive integer, got {max_age_ms!r}")
        if unanchored_policy not in ("keep", "clear"):
            raise ValueError(f"Unknown unanchored_policy {unanchored_policy!r}")
        self._max_age_ms = max_age_ms
        self._clock = clock
        self._unanchored_policy = unanchored_policy
        self._events: list[Event] = []
        # True once any event has been pruned since creation or clear().
        self._trimmed = False

    @property
    def max_age_ms(self) -> int:
        return self._max_age_ms

    @property
    def unanchored_policy(self) -> UnanchoredPolicy:
        return self._unanchored_policy

    def __len__(self) -> int:
        return len(self._events)

    def add(self, event: Event) -> None:
        """Append event and prune expired events from the front."""
        self._events.append(event)
        self._prune()

    def get_all(self) -> tuple[Event, ...]:
        """Return a read-only, point-in-time copy of the buffer in chronological order."""
        return tuple(self._events)

    def clear(self) -> None:
        """Empty the buffer unconditionally."""
        self._events = []
        self._trimmed = False

    def is_anchored(self) -> bool:
        """Whether the retained slice can be replayed from index 0.

        True when the buffer is empty, starts with a full snapshot, or
        still holds the very first event recorded since the last clear.
        """
        if not self._events or not self._trimmed:
            return True
        return _is_anchor(self._events[0])

    def _prune(self) -> None:
        if not self._events:
            return

        was_anchored = self.is_anchored()
        cutoff = self._clock() - self._max_age_ms
        first_valid = next(
            (i for i, event in enumerate(self._events) if _in_window(event, cutoff)),
            None,
        )

        if first_valid == 0:
            return

        if first_valid is None:
            self._collapse_to_last_snapshot()
        else:
            self._drop_before(first_valid)

        if was_anchored and not self.is_anchored():
            logger.warning(
                "Retention window lost its full snapshot anchor; "
                "%d retained events may not replay",
                len(self._events),
            )

    def _collapse_to_last_snapshot(self) -> None:
        """Every event is expired: keep only the newest full snapshot, if any."""
        dropped = len(self._events)
        for event in reversed(self._events):
            if _is_anchor(event):
                self._events = [event]
                dropped -= 1
                break
        else:
            self._events = []

        if dropped:
            self._trimmed = True
            logger.debug("Pruned %d expired events, %d retained", dropped, len(self._events))

    def _drop_before(self, first_valid: int) -> None:
        """Some events are in the window: cut at the nearest preceding snapshot."""
        cut = first_valid
        for i in range(first_valid - 1, -1, -1):
            if _is_anchor(self._events[i]):
                cut = i
                break

        if cut == 0:
            return

        del self._events[:cut]
        self._trimmed = True
        logger.debug("Pruned %d expired events, %d retained", cut, len(self._events))

        if self._unanchored_policy == "clear" and not any(
            _is_anchor(event) for event in self._events
        ):
            logger.debug("No full snapshot left to anchor %d events, clearing", len(self._events))
            self._events = []
