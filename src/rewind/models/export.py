"""Metadata model written to meta.json inside an export bundle.

Serialized with camelCase keys, the names the replay viewer reads.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from rewind.models.session import Breadcrumb, UserInfo

# Bumped when meta.json gains or changes fields.
CURRENT_BUNDLE_SCHEMA_VERSION = 1


class ExportMetadata(BaseModel):
    """Everything in a bundle besides the replay payload.

    The first seven fields are the viewer contract; anchored,
    event_count and schema_version are additive.
    """

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    timestamp: int | float
    reason: str
    user_info: UserInfo | None = None
    tags: dict[str, str] = Field(default_factory=dict)
    breadcrumbs: list[Breadcrumb] = Field(default_factory=list)
    user_agent: str | None = None
    url: str | None = None
    anchored: bool = True
    event_count: int = 0
    schema_version: int = CURRENT_BUNDLE_SCHEMA_VERSION
