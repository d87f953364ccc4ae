"""Channel manager: owns the channels and the outbound dispatch loop."""

from __future__ import annotations

import asyncio

from loguru import logger

from asisbot.bus.queue import MessageBus
from asisbot.channels.base import BaseChannel
from asisbot.errors import TransportError


class ChannelManager:
    """Starts channels and delivers outbound messages to the right one."""

    def __init__(self, bus: MessageBus):
        self.bus = bus
        self.channels: dict[str, BaseChannel] = {}
        self._dispatch_task: asyncio.Task[None] | None = None
        self._running = False

    def register(self, channel: BaseChannel) -> None:
        self.channels[channel.name] = channel
        logger.info(f"Channel registered: {channel.name}")

    @property
    def enabled_channels(self) -> list[str]:
        return list(self.channels)

    async def start_all(self) -> None:
        """Start every channel and the outbound dispatcher."""
        if not self.channels:
            logger.warning("No channels enabled")
        self._running = True
        self._dispatch_task = asyncio.create_task(self._dispatch_outbound())
        await asyncio.gather(*(self._start_channel(ch) for ch in self.channels.values()))

    async def _start_channel(self, channel: BaseChannel) -> None:
        try:
            await channel.start()
        except Exception:
            logger.exception(f"Failed to start channel {channel.name}")

    async def stop_all(self) -> None:
        self._running = False
        if self._dispatch_task:
            self._dispatch_task.cancel()
            try:
                await self._dispatch_task
            except asyncio.CancelledError:
                pass
            self._dispatch_task = None
        for name, channel in self.channels.items():
            try:
                await channel.stop()
                logger.info(f"Stopped {name} channel")
            except Exception as e:
                logger.error(f"Error stopping {name}: {e}")

    async def _dispatch_outbound(self) -> None:
        """Forward outbound messages to their channel until stopped."""
        logger.info("Outbound dispatcher started")
        while self._running:
            try:
                msg = await asyncio.wait_for(self.bus.consume_outbound(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            except asyncio.CancelledError:
                break

            channel = self.channels.get(msg.channel)
            if channel is None:
                logger.warning(f"Unknown channel: {msg.channel}")
                continue
            try:
                await channel.deliver(msg)
            except TransportError as e:
                logger.error(f"Error sending {msg.kind} to {msg.channel}:{msg.chat_id}: {e}")
