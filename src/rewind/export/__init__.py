"""Export subpackage: build and read compressed replay bundles."""

from rewind.export.bundle import (
    DEFAULT_COMPRESSION_LEVEL,
    META_ENTRY,
    RECORDING_ENTRY,
    LoadedBundle,
    build_bundle,
    read_bundle,
    serialize_events,
    serialize_metadata,
)
from rewind.export.environment import default_user_agent

__all__ = [
    "DEFAULT_COMPRESSION_LEVEL",
    "LoadedBundle",
    "META_ENTRY",
    "RECORDING_ENTRY",
    "build_bundle",
    "default_user_agent",
    "read_bundle",
    "serialize_events",
    "serialize_metadata",
]
