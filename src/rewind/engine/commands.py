"""Command surface of the processing engine.

Values are the wire names used by capture-layer and instrumentation
collaborators.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any


class Command(str, Enum):
    """Commands accepted by a ProcessingEngine."""

    SET_BUFFER_SIZE = "setBufferSize"
    SET_USER_INFO = "setUserInfo"
    SET_TAG = "setTag"
    ADD_BREADCRUMB = "addBreadcrumb"
    ADD_EVENT = "addEvent"
    EXPORT_DATA = "exportData"
    CLEAR = "clear"


@dataclass
class CommandMessage:
    """One queued command and the future its result is delivered through."""

    command: Command
    args: tuple[Any, ...]
    future: asyncio.Future[Any]
