"""Export bundle codec.

A bundle is a ZIP archive with two entries:

    recording.json   compact JSON array of events, chronological order
    meta.json        pretty-printed ExportMetadata (camelCase keys)

Viewers only require recording.json; meta.json is optional on read.
Building is pure: no disk or network I/O, the caller owns the bytes.
"""

from __future__ import annotations

import io
import json
import logging
import zipfile
import zlib
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from rewind.errors import BundleFormatError, ExportBuildError
from rewind.models.event import Event, coerce_event
from rewind.models.export import ExportMetadata

logger = logging.getLogger(__name__)

RECORDING_ENTRY = "recording.json"
META_ENTRY = "meta.json"
DEFAULT_COMPRESSION_LEVEL = 6


class LoadedBundle(BaseModel):
    """Decoded contents of an export bundle."""

    events: list[Event] = Field(default_factory=list)
    meta: ExportMetadata | None = None


def serialize_events(events: Sequence[Event]) -> bytes:
    """Encode events as the compact recording.json payload.

    Payloads must already be plain JSON values; nothing is converted, so
    decoding the result reproduces the events exactly.

    Raises:
        ExportBuildError: If any payload is circular, holds a value JSON
            cannot represent (set, bytes, datetime, ...), a tuple, or a
            mapping key that is not a str.
    """
    try:
        data = [event.model_dump(warnings=False) for event in events]
        text = json.dumps(data, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
        _require_lossless(data)
    except (TypeError, ValueError, RecursionError) as exc:
        raise ExportBuildError(f"Cannot serialize recording: {exc}") from exc
    return text.encode("utf-8")


def serialize_metadata(meta: ExportMetadata) -> bytes:
    """Encode metadata as the pretty-printed meta.json payload.

    Raises:
        ExportBuildError: If breadcrumb or context data is not JSON-serializable.
    """
    try:
        data = meta.model_dump(by_alias=True, warnings=False)
        text = json.dumps(data, indent=2, ensure_ascii=False, allow_nan=False)
        _require_lossless(data)
    except (TypeError, ValueError, RecursionError) as exc:
        raise ExportBuildError(f"Cannot serialize metadata: {exc}") from exc
    return text.encode("utf-8")


def build_bundle(
    events: Sequence[Event],
    meta: ExportMetadata,
    compression_level: int = DEFAULT_COMPRESSION_LEVEL,
) -> bytes:
    """Package events and metadata into a compressed bundle.

    An empty events sequence still yields a valid bundle with an empty
    array. Both entries are serialized before the archive is opened, so
    a failure never produces partial output.

    Args:
        events: Events in chronological order.
        meta: Metadata for meta.json.
        compression_level: DEFLATE level, 0 (store) to 9.

    Returns:
        Raw ZIP bytes.

    Raises:
        ExportBuildError: If serialization or compression fails.
    """
    recording = serialize_events(events)
    metadata = serialize_metadata(meta)

    out = io.BytesIO()
    try:
        with zipfile.ZipFile(
            out,
            mode="w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=compression_level,
        ) as archive:
            archive.writestr(RECORDING_ENTRY, recording)
            archive.writestr(META_ENTRY, metadata)
    except (OSError, ValueError, zlib.error) as exc:
        raise ExportBuildError(f"Cannot compress bundle: {exc}") from exc

    data = out.getvalue()
    logger.debug(
        "Built bundle: %d events, %d bytes (%d uncompressed)",
        len(events),
        len(data),
        len(recording) + len(metadata),
    )
    return data


def read_bundle(data: bytes) -> LoadedBundle:
    """Decode a bundle produced by build_bundle.

    Events that no longer validate (newer kinds, odd timestamps) are kept
    as-is rather than rejected.

    Raises:
        BundleFormatError: If data is not a ZIP, recording.json is missing
            or not a JSON array, or meta.json is present but invalid.
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as exc:
        raise BundleFormatError(f"Not a bundle archive: {exc}") from exc

    with archive:
        names = set(archive.namelist())
        if RECORDING_ENTRY not in names:
            raise BundleFormatError(f"{RECORDING_ENTRY} not found in bundle")

        raw_events = _load_json_entry(archive, RECORDING_ENTRY)
        if not isinstance(raw_events, list):
            raise BundleFormatError(f"{RECORDING_ENTRY} must contain a JSON array")

        meta: ExportMetadata | None = None
        if META_ENTRY in names:
            try:
                meta = ExportMetadata.model_validate(_load_json_entry(archive, META_ENTRY))
            except ValidationError as exc:
                raise BundleFormatError(f"Invalid {META_ENTRY}: {exc}") from exc

    return LoadedBundle.model_construct(
        events=[coerce_event(item) for item in raw_events],
        meta=meta,
    )


def _require_lossless(value: Any) -> None:
    """Reject values json.dumps accepts but would not decode back unchanged."""
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"mapping keys must be str, got {type(key).__name__} key {key!r}")
            _require_lossless(item)
    elif isinstance(value, tuple):
        raise TypeError("tuples are not supported, they decode as lists")
    elif isinstance(value, list):
        for item in value:
            _require_lossless(item)


def _load_json_entry(archive: zipfile.ZipFile, name: str) -> Any:
    try:
        return json.loads(archive.read(name).decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError, zipfile.BadZipFile, zlib.error) as exc:
        raise BundleFormatError(f"Cannot decode {name}: {exc}") from exc
