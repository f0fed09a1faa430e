"""Event model shared by the capture layer, the retention buffer and the export bundle.

Pydantic models because events are serialized to JSON for the bundle;
model_dump/model_validate give a lossless round-trip.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any

from pydantic import BaseModel

from rewind.models.coerce import coerce_model


class EventKind(IntEnum):
    """Closed set of event tags emitted by the capture layer.

    Only FULL_SNAPSHOT matters to retention: it is the only kind a replay
    can start from.
    """

    DOM_CONTENT_LOADED = 0
    LOAD = 1
    FULL_SNAPSHOT = 2
    INCREMENTAL_SNAPSHOT = 3
    META = 4
    CUSTOM = 5
    PLUGIN = 6


class Event(BaseModel):
    """A single timestamped interaction event.

    Field order is the serialized order in recording.json.
    """

    model_config = {"frozen": True}

    timestamp: int | float  # ms since epoch
    kind: EventKind
    payload: Any = None

    @property
    def is_full_snapshot(self) -> bool:
        return self.kind == EventKind.FULL_SNAPSHOT


def coerce_event(raw: Any) -> Event:
    """Turn producer input into an Event, keeping malformed records as-is."""
    return coerce_model(Event, raw)
