"""Session metadata models: identity, breadcrumbs and the exported snapshot."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from rewind.models.coerce import coerce_model


class UserInfo(BaseModel):
    """Opaque user identity attached to the current recording."""

    id: str
    context: dict[str, Any] | None = None


class Breadcrumb(BaseModel):
    """Auxiliary log entry describing ambient activity (console, network, ...).

    Not part of the replay payload; exported in meta.json only.
    """

    category: str
    message: str
    level: str = "info"  # debug, info, warn, error
    data: dict[str, Any] | None = None
    timestamp: int | float | None = None


class SessionSnapshot(BaseModel):
    """Point-in-time copy of SessionState used by the export pipeline."""

    user_info: UserInfo | None = None
    tags: dict[str, str] = Field(default_factory=dict)
    breadcrumbs: list[Breadcrumb] = Field(default_factory=list)


def coerce_breadcrumb(raw: Any) -> Breadcrumb:
    """Turn instrumentation input into a Breadcrumb, keeping malformed records as-is."""
    return coerce_model(Breadcrumb, raw)
