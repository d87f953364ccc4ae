"""Async message queue between channels and the dispatch engine."""

import asyncio

from asisbot.bus.events import InboundMessage, OutboundMessage


class MessageBus:
    """Two asyncio queues: channels publish inbound, the engine publishes outbound."""

    def __init__(self) -> None:
        self.inbound: asyncio.Queue[InboundMessage] = asyncio.Queue()
        self.outbound: asyncio.Queue[OutboundMessage] = asyncio.Queue()

    async def publish_inbound(self, msg: InboundMessage) -> None:
        await self.inbound.put(msg)

    async def consume_inbound(self) -> InboundMessage:
        return await self.inbound.get()

    def inbound_done(self) -> None:
        """Mark one consumed inbound message as fully handled."""
        self.inbound.task_done()

    async def wait_inbound_handled(self) -> None:
        """Wait until every published inbound message has been handled."""
        await self.inbound.join()

    async def publish_outbound(self, msg: OutboundMessage) -> None:
        await self.outbound.put(msg)

    async def consume_outbound(self) -> OutboundMessage:
        return await self.outbound.get()

    @property
    def inbound_size(self) -> int:
        return self.inbound.qsize()

    @property
    def outbound_size(self) -> int:
        return self.outbound.qsize()
