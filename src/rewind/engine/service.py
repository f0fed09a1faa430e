"""EngineService: runs a ProcessingEngine as an asyncio actor.

Producers enqueue commands without waiting; a single consumer task
executes them strictly in arrival order. An export therefore reflects
exactly the events queued before it and none queued after. Exports are
compressed in a worker thread so the event loop stays responsive, but
the consumer waits for them before taking the next command.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from rewind.engine.commands import Command, CommandMessage
from rewind.engine.processor import ProcessingEngine
from rewind.errors import EngineNotRunningError
from rewind.models.config import RecorderConfig
from rewind.models.event import Event
from rewind.models.session import Breadcrumb, UserInfo
from rewind.retention.clock import Clock, wall_clock_ms

logger = logging.getLogger(__name__)


class EngineService:
    """Message-passing front end for one ProcessingEngine.

    The wrapped engine is private; collaborators receive this service
    and talk to it only through commands.

    Usage:
        async with EngineService.from_config(config) as service:
            service.add_event(event)
            bundle = await service.export_data("feedback_button")
    """

    def __init__(self, engine: ProcessingEngine | None = None) -> None:
        self._engine = engine or ProcessingEngine()
        self._queue: asyncio.Queue[CommandMessage | None] | None = None
        self._consumer: asyncio.Task[None] | None = None
        self._stopping = False

    @classmethod
    def from_config(cls, config: RecorderConfig, clock: Clock = wall_clock_ms) -> EngineService:
        return cls(ProcessingEngine.from_config(config, clock=clock))

    @property
    def running(self) -> bool:
        return self._consumer is not None and not self._consumer.done() and not self._stopping

    async def start(self) -> None:
        """Spawn the consumer task. No-op if already running or stopping."""
        if self.running or self._stopping:
            return
        self._queue = asyncio.Queue()
        self._stopping = False
        self._consumer = asyncio.create_task(self._consume(self._queue), name="rewind-engine")
        logger.debug("Engine service started")

    async def stop(self) -> None:
        """Finish every command already queued, then stop the consumer.

        New commands are refused as soon as stopping begins.
        """
        if self._queue is None or self._consumer is None or self._stopping:
            return
        self._stopping = True
        self._queue.put_nowait(None)
        try:
            await self._consumer
        finally:
            self._queue = None
            self._consumer = None
            self._stopping = False
        logger.debug("Engine service stopped")

    async def __aenter__(self) -> EngineService:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    def send(self, command: Command, *args: Any) -> asyncio.Future[Any]:
        """Enqueue a command and return the future for its result.

        Raises:
            EngineNotRunningError: If the service has not been started
                or has been stopped.
        """
        if not self.running or self._queue is None:
            raise EngineNotRunningError(f"Cannot send {command.value}: engine service is not running")
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._queue.put_nowait(CommandMessage(command=command, args=args, future=future))
        return future

    # -- command surface --

    def set_buffer_size(self, milliseconds: int) -> asyncio.Future[Any]:
        """Replace the retention window. Discards everything buffered so far."""
        return self.send(Command.SET_BUFFER_SIZE, milliseconds)

    def set_user_info(self, info: UserInfo | Mapping[str, Any]) -> asyncio.Future[Any]:
        return self.send(Command.SET_USER_INFO, info)

    def set_tag(self, key: str, value: str) -> asyncio.Future[Any]:
        return self.send(Command.SET_TAG, key, value)

    def add_breadcrumb(self, entry: Breadcrumb | Mapping[str, Any]) -> asyncio.Future[Any]:
        return self.send(Command.ADD_BREADCRUMB, entry)

    def add_event(self, event: Event | Mapping[str, Any]) -> asyncio.Future[Any]:
        return self.send(Command.ADD_EVENT, event)

    def export_data(self, reason: str = "unknown") -> asyncio.Future[Any]:
        """Export the events queued so far; await the result for bundle bytes.

        The command is queued immediately, so events sent after this call
        are never part of the bundle.

        Raises:
            ExportBuildError: If the bundle cannot be built. Recording
                state is unchanged and the export can be retried.
        """
        return self.send(Command.EXPORT_DATA, reason)

    def clear(self) -> asyncio.Future[Any]:
        return self.send(Command.CLEAR)

    # -- consumer --

    async def _consume(self, queue: asyncio.Queue[CommandMessage | None]) -> None:
        while True:
            message = await queue.get()
            if message is None:
                break
            await self._process(message)

    async def _process(self, message: CommandMessage) -> None:
        try:
            if message.command is Command.EXPORT_DATA:
                result = await asyncio.to_thread(self._engine.dispatch, message.command, *message.args)
            else:
                result = self._engine.dispatch(message.command, *message.args)
        except Exception as exc:
            # Delivered to the sender; the consumer keeps serving.
            if message.command is not Command.EXPORT_DATA or message.future.done():
                logger.error("%s failed: %s", message.command.value, exc)
            if not message.future.done():
                message.future.set_exception(exc)
        else:
            if not message.future.done():
                message.future.set_result(result)
