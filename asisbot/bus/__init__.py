"""Message bus module for decoupled channel-engine communication."""

from asisbot.bus.events import InboundMessage, OutboundMessage
from asisbot.bus.queue import MessageBus

__all__ = ["MessageBus", "InboundMessage", "OutboundMessage"]
