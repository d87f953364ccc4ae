"""Base channel interface for chat platforms."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from loguru import logger

from asisbot.bus.events import InboundMessage, OutboundMessage
from asisbot.bus.queue import MessageBus


class BaseChannel(ABC):
    """
    Abstract base class for chat channel implementations.

    A channel turns platform events into :class:`InboundMessage` on the bus
    and delivers :class:`OutboundMessage` back to the platform. ``send`` raises
    :class:`~asisbot.errors.TransportError` when delivery fails.
    """

    name: str = "base"

    def __init__(self, bus: MessageBus, bot_id: str = ""):
        self.bus = bus
        self.bot_id = bot_id
        self._running = False

    @abstractmethod
    async def start(self) -> None:
        """Connect to the platform and start listening."""

    @abstractmethod
    async def stop(self) -> None:
        """Stop listening and release resources."""

    @abstractmethod
    async def send(self, msg: OutboundMessage) -> None:
        """Deliver a text reply."""

    async def mark_read(self, msg: OutboundMessage) -> None:
        """Mark the conversation as read. No-op where unsupported."""

    async def send_typing(self, msg: OutboundMessage) -> None:
        """Show a typing indicator. No-op where unsupported."""

    async def deliver(self, msg: OutboundMessage) -> None:
        """Route *msg* by kind."""
        if msg.kind == "read":
            await self.mark_read(msg)
        elif msg.kind == "typing":
            await self.send_typing(msg)
        else:
            await self.send(msg)

    async def _handle_message(
        self,
        sender_id: str,
        chat_id: str,
        content: str,
        chat_type: str = "private",
        message_id: str = "",
        sender_name: str = "",
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Publish a platform message on the bus."""
        msg = InboundMessage(
            channel=self.name,
            sender_id=str(sender_id),
            chat_id=str(chat_id),
            content=content,
            chat_type=chat_type,
            from_self=bool(self.bot_id) and str(sender_id) == self.bot_id,
            message_id=message_id,
            sender_name=sender_name,
            metadata=metadata or {},
        )
        logger.debug(f"{self.name}: inbound from {msg.sender_id} in {msg.chat_id}")
        await self.bus.publish_inbound(msg)

    @property
    def is_running(self) -> bool:
        return self._running
