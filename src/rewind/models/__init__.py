"""Rewind data models - re-exports all public model classes."""

from rewind.models.config import RecorderConfig
from rewind.models.event import Event, EventKind, coerce_event
from rewind.models.export import CURRENT_BUNDLE_SCHEMA_VERSION, ExportMetadata
from rewind.models.session import Breadcrumb, SessionSnapshot, UserInfo, coerce_breadcrumb

__all__ = [
    "Breadcrumb",
    "CURRENT_BUNDLE_SCHEMA_VERSION",
    "Event",
    "EventKind",
    "ExportMetadata",
    "RecorderConfig",
    "SessionSnapshot",
    "UserInfo",
    "coerce_breadcrumb",
    "coerce_event",
]
