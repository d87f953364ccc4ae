"""Agent core module."""

from asisbot.agent.commands import CommandRouter
from asisbot.agent.escalator import ResponseEscalator
from asisbot.agent.loop import DispatchEngine
from asisbot.agent.memory import MemoryStore

__all__ = ["CommandRouter", "DispatchEngine", "MemoryStore", "ResponseEscalator"]
