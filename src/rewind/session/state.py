"""Session state attached to the current recording.

Identity, string tags and a capped FIFO of breadcrumbs. Breadcrumb
eviction is count-based and independent of the retention window.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any

from rewind.models.session import Breadcrumb, SessionSnapshot, UserInfo

logger = logging.getLogger(__name__)

DEFAULT_BREADCRUMB_LIMIT = 100


class SessionState:
    """Mutable identity, tags and breadcrumbs for one recording.

    Owned by a single ProcessingEngine; not thread-safe.
    """

    def __init__(self, breadcrumb_limit: int = DEFAULT_BREADCRUMB_LIMIT) -> None:
        if breadcrumb_limit < 1:
            raise ValueError(f"breadcrumb_limit must be >= 1, got {breadcrumb_limit}")
        self._user_info: UserInfo | None = None
        self._tags: dict[str, str] = {}
        self._breadcrumbs: deque[Breadcrumb] = deque(maxlen=breadcrumb_limit)

    @property
    def breadcrumb_limit(self) -> int:
        return self._breadcrumbs.maxlen or DEFAULT_BREADCRUMB_LIMIT

    @property
    def user_info(self) -> UserInfo | None:
        return self._user_info

    @property
    def tags(self) -> dict[str, str]:
        return dict(self._tags)

    @property
    def breadcrumbs(self) -> list[Breadcrumb]:
        return list(self._breadcrumbs)

    def set_identity(self, user_id: str, context: dict[str, Any] | None = None) -> None:
        """Overwrite the current identity. No format or uniqueness checks."""
        self._user_info = UserInfo.model_construct(id=user_id, context=context)

    def set_tag(self, key: str, value: str) -> None:
        self._tags[key] = value

    def add_breadcrumb(self, entry: Breadcrumb) -> None:
        """Append entry, evicting the oldest once the cap is exceeded."""
        if len(self._breadcrumbs) == self._breadcrumbs.maxlen:
            logger.debug("Breadcrumb cap %d reached, evicting oldest", self._breadcrumbs.maxlen)
        self._breadcrumbs.append(entry)

    def clear(self) -> None:
        self._user_info = None
        self._tags = {}
        self._breadcrumbs.clear()

    def snapshot(self) -> SessionSnapshot:
        """Deep copy of the current state, safe to hand to the export pipeline."""
        return SessionSnapshot.model_construct(
            user_info=self._user_info.model_copy(deep=True) if self._user_info else None,
            tags=dict(self._tags),
            breadcrumbs=[crumb.model_copy(deep=True) for crumb in self._breadcrumbs],
        )
