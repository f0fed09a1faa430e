"""Tests for rewind.retention.buffer - age-bounded retention with snapshot anchoring."""

from __future__ import annotations

import random

import pytest

from rewind.models.event import Event, EventKind, coerce_event
from rewind.retention.buffer import RetentionBuffer
from rewind.retention.clock import ManualClock


# -- Fixtures --


def _snap(ts: int) -> Event:
    return Event(timestamp=ts, kind=EventKind.FULL_SNAPSHOT, payload={"node": ts})


def _inc(ts: int) -> Event:
    return Event(timestamp=ts, kind=EventKind.INCREMENTAL_SNAPSHOT, payload={"delta": ts})


def _make_buffer(max_age_ms: int = 1000, policy: str = "keep") -> tuple[RetentionBuffer, ManualClock]:
    clock = ManualClock()
    return RetentionBuffer(max_age_ms=max_age_ms, clock=clock, unanchored_policy=policy), clock


def _feed(buffer: RetentionBuffer, clock: ManualClock, events: list[Event]) -> None:
    """Add events with the clock following each event's timestamp."""
    for event in events:
        clock.set(event.timestamp)
        buffer.add(event)


def _stamps(buffer: RetentionBuffer) -> list[int]:
    return [e.timestamp for e in buffer.get_all()]


# -- Basics --


class TestRetentionBufferBasics:
    def test_starts_empty(self):
        buffer, _ = _make_buffer()
        assert buffer.get_all() == ()
        assert len(buffer) == 0
        assert buffer.is_anchored() is True

    def test_add_preserves_order(self):
        buffer, clock = _make_buffer()
        _feed(buffer, clock, [_snap(0), _inc(10), _inc(20)])
        assert _stamps(buffer) == [0, 10, 20]

    def test_get_all_is_a_copy(self):
        buffer, clock = _make_buffer()
        _feed(buffer, clock, [_snap(0)])
        snapshot = buffer.get_all()
        _feed(buffer, clock, [_inc(5)])
        assert len(snapshot) == 1
        assert len(buffer.get_all()) == 2

    def test_get_all_is_idempotent(self):
        buffer, clock = _make_buffer()
        _feed(buffer, clock, [_snap(0), _inc(100), _inc(1500)])
        assert buffer.get_all() == buffer.get_all()

    def test_clear_empties_buffer(self):
        buffer, clock = _make_buffer()
        _feed(buffer, clock, [_snap(0), _inc(10)])
        buffer.clear()
        assert buffer.get_all() == ()
        assert buffer.is_anchored() is True

    @pytest.mark.parametrize("bad", [0, -1, 1.5, True, "1000"])
    def test_rejects_non_positive_integer_window(self, bad):
        with pytest.raises(ValueError, match="positive integer"):
            RetentionBuffer(max_age_ms=bad)

    def test_rejects_unknown_policy(self):
        with pytest.raises(ValueError, match="unanchored_policy"):
            RetentionBuffer(unanchored_policy="drop")


# -- Pruning --


class TestPruning:
    def test_everything_in_window_is_kept(self):
        buffer, clock = _make_buffer()
        _feed(buffer, clock, [_inc(0), _inc(300), _inc(900)])
        assert _stamps(buffer) == [0, 300, 900]

    def test_snapshot_anchor_extends_window(self):
        """Stale events after the nearest snapshot stay so the slice replays."""
        buffer, clock = _make_buffer(max_age_ms=1000)
        _feed(buffer, clock, [_snap(0), _inc(500), _inc(1800)])
        assert _stamps(buffer) == [0, 500, 1800]
        assert buffer.get_all()[0].kind == EventKind.FULL_SNAPSHOT

    def test_all_stale_without_snapshot_clears(self):
        buffer, clock = _make_buffer(max_age_ms=1000)
        _feed(buffer, clock, [_inc(100)])
        clock.set(1500)
        buffer.add(_inc(200))
        assert buffer.get_all() == ()

    def test_cuts_at_nearest_preceding_snapshot(self):
        buffer, clock = _make_buffer(max_age_ms=1000)
        _feed(buffer, clock, [_snap(0), _inc(100), _snap(500), _inc(600), _inc(1700)])
        assert _stamps(buffer) == [500, 600, 1700]

    def test_all_stale_collapses_to_last_snapshot(self):
        buffer, clock = _make_buffer(max_age_ms=1000)
        _feed(buffer, clock, [_snap(0), _inc(100), _snap(200), _inc(300)])
        clock.set(5000)
        buffer.add(_inc(400))
        assert _stamps(buffer) == [200]
        assert buffer.get_all()[0].kind == EventKind.FULL_SNAPSHOT

    def test_events_after_collapse_follow_the_snapshot(self):
        buffer, clock = _make_buffer(max_age_ms=1000)
        _feed(buffer, clock, [_snap(0), _inc(100)])
        clock.set(5000)
        buffer.add(_inc(200))
        _feed(buffer, clock, [_inc(5000), _inc(5100)])
        assert _stamps(buffer) == [0, 5000, 5100]

    def test_no_stale_snapshot_keeps_in_window_slice(self):
        buffer, clock = _make_buffer(max_age_ms=1000)
        _feed(buffer, clock, [_inc(0), _inc(100), _inc(1500)])
        assert _stamps(buffer) == [1500]
        assert buffer.is_anchored() is False

    def test_in_window_snapshot_start_is_anchored(self):
        buffer, clock = _make_buffer(max_age_ms=1000)
        _feed(buffer, clock, [_inc(0), _snap(1200), _inc(1500)])
        assert _stamps(buffer) == [1200, 1500]
        assert buffer.is_anchored() is True

    def test_untrimmed_incremental_start_is_anchored(self):
        """The very first recorded event is a valid replay start."""
        buffer, clock = _make_buffer(max_age_ms=1000)
        _feed(buffer, clock, [_inc(0), _inc(500)])
        assert buffer.is_anchored() is True

    def test_clear_policy_empties_unanchored_window(self):
        buffer, clock = _make_buffer(max_age_ms=1000, policy="clear")
        _feed(buffer, clock, [_inc(0), _inc(100), _inc(1500)])
        assert buffer.get_all() == ()

    def test_clear_policy_keeps_window_with_snapshot(self):
        buffer, clock = _make_buffer(max_age_ms=1000, policy="clear")
        _feed(buffer, clock, [_inc(0), _snap(1200), _inc(1500)])
        assert _stamps(buffer) == [1200, 1500]

    def test_malformed_timestamp_never_raises(self):
        buffer, clock = _make_buffer(max_age_ms=1000)
        _feed(buffer, clock, [_snap(0)])
        clock.set(10)
        buffer.add(coerce_event({"timestamp": "soon", "kind": 3}))
        assert len(buffer) == 2

    def test_malformed_events_count_as_expired(self):
        buffer, clock = _make_buffer(max_age_ms=1000)
        clock.set(10)
        buffer.add(coerce_event({"kind": 3}))
        assert buffer.get_all() == ()


class TestPruningInvariants:
    """Randomized streams that start with a snapshot, as the capture layer emits them."""

    @pytest.mark.parametrize("seed", range(20))
    def test_front_is_always_a_snapshot_and_never_empty(self, seed):
        rng = random.Random(seed)
        buffer, clock = _make_buffer(max_age_ms=1000)
        ts = 0
        events = [_snap(0)]
        for _ in range(200):
            ts += rng.randint(0, 800)
            events.append(_snap(ts) if rng.random() < 0.2 else _inc(ts))

        for event in events:
            clock.set(event.timestamp + rng.choice([0, 0, 0, rng.randint(0, 3000)]))
            buffer.add(event)
            retained = buffer.get_all()
            assert retained, "buffer holding a snapshot must never collapse to empty"
            assert retained[0].kind == EventKind.FULL_SNAPSHOT
            assert buffer.is_anchored() is True

    @pytest.mark.parametrize("seed", range(10))
    def test_retained_events_stay_in_insertion_order(self, seed):
        rng = random.Random(seed)
        buffer, clock = _make_buffer(max_age_ms=500)
        ts = 0
        for i in range(150):
            ts += rng.randint(0, 300)
            kind = EventKind.FULL_SNAPSHOT if i % 7 == 0 else EventKind.INCREMENTAL_SNAPSHOT
            clock.set(ts)
            buffer.add(Event(timestamp=ts, kind=kind, payload=i))
        payloads = [e.payload for e in buffer.get_all()]
        assert payloads == sorted(payloads)
