"""Engine subpackage: the command core and its asyncio message-passing service."""

from rewind.engine.commands import Command, CommandMessage
from rewind.engine.processor import ProcessingEngine
from rewind.engine.service import EngineService

__all__ = [
    "Command",
    "CommandMessage",
    "EngineService",
    "ProcessingEngine",
]
