"""ProcessingEngine: the single owner of a retention buffer and session state.

All mutation goes through the command methods below; nothing else holds
a reference to the buffer or the session. The engine is synchronous and
not thread-safe. EngineService runs it behind a message queue.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import Any

from rewind.engine.commands import Command
from rewind.errors import ExportBuildError
from rewind.export.bundle import DEFAULT_COMPRESSION_LEVEL, build_bundle
from rewind.export.environment import default_user_agent
from rewind.models.coerce import coerce_model
from rewind.models.config import RecorderConfig
from rewind.models.event import Event, coerce_event
from rewind.models.export import ExportMetadata
from rewind.models.session import Breadcrumb, SessionSnapshot, UserInfo, coerce_breadcrumb
from rewind.retention.buffer import DEFAULT_MAX_AGE_MS, RetentionBuffer, UnanchoredPolicy
from rewind.retention.clock import Clock, wall_clock_ms
from rewind.session.state import DEFAULT_BREADCRUMB_LIMIT, SessionState

logger = logging.getLogger(__name__)


class ProcessingEngine:
    """Owns one RetentionBuffer and one SessionState and answers commands.

    Buffer and session mutations never raise for malformed input; only
    export_data can fail, and a failed export leaves state untouched.
    """

    def __init__(
        self,
        buffer_size_ms: int = DEFAULT_MAX_AGE_MS,
        clock: Clock = wall_clock_ms,
        breadcrumb_limit: int = DEFAULT_BREADCRUMB_LIMIT,
        unanchored_policy: UnanchoredPolicy = "keep",
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
        url: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        self._clock = clock
        self._unanchored_policy = unanchored_policy
        self._buffer = self._new_buffer(buffer_size_ms)
        self._session = SessionState(breadcrumb_limit)
        self._compression_level = compression_level
        self._url = url
        self._user_agent = user_agent or default_user_agent()
        self._handlers = {
            Command.SET_BUFFER_SIZE: self.set_buffer_size,
            Command.SET_USER_INFO: self.set_user_info,
            Command.SET_TAG: self.set_tag,
            Command.ADD_BREADCRUMB: self.add_breadcrumb,
            Command.ADD_EVENT: self.add_event,
            Command.EXPORT_DATA: self.export_data,
            Command.CLEAR: self.clear,
        }

    @classmethod
    def from_config(cls, config: RecorderConfig, clock: Clock = wall_clock_ms) -> ProcessingEngine:
        return cls(
            buffer_size_ms=config.buffer_size_ms,
            clock=clock,
            breadcrumb_limit=config.breadcrumb_limit,
            unanchored_policy=config.unanchored_policy,
            compression_level=config.compression_level,
            url=config.url,
            user_agent=config.user_agent,
        )

    @property
    def buffer_size_ms(self) -> int:
        return self._buffer.max_age_ms

    def dispatch(self, command: Command | str, *args: Any) -> Any:
        """Run a command by enum value or wire name.

        Raises:
            ValueError: If command is not a known Command.
        """
        return self._handlers[Command(command)](*args)

    # -- commands --

    def set_buffer_size(self, milliseconds: int) -> int:
        """Replace the retention buffer with one using a new window.

        Buffered events are discarded, never migrated. Subsequent events
        populate the fresh buffer.

        Returns:
            Number of events discarded.

        Raises:
            ValueError: If milliseconds is not a positive integer.
        """
        replacement = self._new_buffer(milliseconds)
        discarded = len(self._buffer)
        self._buffer = replacement
        if discarded:
            logger.warning(
                "Retention window changed to %d ms, discarded %d buffered events",
                milliseconds,
                discarded,
            )
        else:
            logger.debug("Retention window changed to %d ms", milliseconds)
        return discarded

    def set_user_info(self, info: UserInfo | Mapping[str, Any]) -> None:
        user = coerce_model(UserInfo, info)
        self._session.set_identity(user.id, user.context)

    def set_tag(self, key: str, value: str) -> None:
        self._session.set_tag(key, value)

    def add_breadcrumb(self, entry: Breadcrumb | Mapping[str, Any]) -> None:
        """Record a breadcrumb, stamping the current time if it has none."""
        crumb = coerce_breadcrumb(entry)
        if crumb.timestamp is None:
            crumb = crumb.model_copy(update={"timestamp": self._clock()})
        self._session.add_breadcrumb(crumb)

    def add_event(self, event: Event | Mapping[str, Any]) -> None:
        self._buffer.add(coerce_event(event))

    def export_data(self, reason: str = "unknown") -> bytes:
        """Build a bundle from the current buffer and session state.

        Reads a snapshot only; nothing is mutated whether the build
        succeeds or fails.

        Raises:
            ExportBuildError: If serialization or compression fails.
        """
        events = self._buffer.get_all()
        try:
            session = self._session.snapshot()
        except (TypeError, copy.Error) as exc:
            logger.error("Export failed (%s): cannot snapshot session state: %s", reason, exc)
            raise ExportBuildError(f"Cannot snapshot session state: {exc}") from exc

        meta = ExportMetadata.model_construct(
            timestamp=self._clock(),
            reason=str(reason),
            user_info=session.user_info,
            tags=session.tags,
            breadcrumbs=session.breadcrumbs,
            user_agent=self._user_agent,
            url=self._url,
            anchored=self._buffer.is_anchored(),
            event_count=len(events),
        )
        try:
            data = build_bundle(events, meta, self._compression_level)
        except ExportBuildError as exc:
            logger.error("Export failed (%s): %s", reason, exc)
            raise

        logger.info("Exported %d events (%s), %d bytes", len(events), reason, len(data))
        return data

    def clear(self) -> None:
        self._buffer.clear()
        self._session.clear()

    # -- read-only views --

    def buffered_events(self) -> tuple[Event, ...]:
        """Copy of the buffered events, oldest first."""
        return self._buffer.get_all()

    def session_snapshot(self) -> SessionSnapshot:
        return self._session.snapshot()

    def is_anchored(self) -> bool:
        return self._buffer.is_anchored()

    def _new_buffer(self, max_age_ms: int) -> RetentionBuffer:
        return RetentionBuffer(
            max_age_ms=max_age_ms,
            clock=self._clock,
            unanchored_policy=self._unanchored_policy,
        )
