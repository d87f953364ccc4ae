"""Dispatch engine: the per-message decision pipeline and its worker loop."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime

from loguru import logger

from asisbot.agent.commands import CommandRouter
from asisbot.agent.escalator import ResponseEscalator
from asisbot.agent.memory import MemoryStore
from asisbot.agent.tools.calculator import CalculatorTool
from asisbot.agent.tools.clock import ClockTool
from asisbot.agent.tools.invoker import ToolInvoker
from asisbot.agent.tools.weather import WeatherTool
from asisbot.agent.tools.web import WebSearchTool
from asisbot.bus.events import InboundMessage, OutboundMessage
from asisbot.bus.queue import MessageBus
from asisbot.config.schema import Config
from asisbot.config.state import BotStateStore
from asisbot.identity.policy import AuthorizationPolicy
from asisbot.nl.intent_engine import CREATOR, ORIGIN_DATE, IntentEngine
from asisbot.providers.base import LLMProvider
from asisbot.providers.weather import OpenMeteoProvider, WeatherProvider
from asisbot.runtime.session_lock import SessionLock
from asisbot.session.intents import SessionIntentState

GENERIC_ERROR = "Ada yang error nih 😅 Coba lagi sebentar ya."

# Chats that are never conversations (WhatsApp status updates).
_IGNORED_CHATS = frozenset({"status@broadcast"})


class DispatchEngine:
    """
    Decides what to do with each inbound message.

    Pipeline (each stage either answers and stops, or defers):

    1. drop own / empty / status-broadcast messages, and group messages
       while group replies are off; any other message consumes a pending slot
    2. directives: ownership claim, ping/status, then admin routing
    3. drop silently while the bot or auto-reply is switched off
    4. fixed answers about the bot's creator and birth date
    5. the follow-up to a pending slot prompt
    6. deterministic tools (clock, weather, calculator, search)
    7. AI reply with memory and search fallback

    At most one text reply is produced per inbound message. Messages of one
    conversation are serialized by :class:`SessionLock`; different
    conversations run concurrently on the worker pool.
    """

    def __init__(
        self,
        bus: MessageBus,
        store: BotStateStore,
        provider: LLMProvider,
        config: Config | None = None,
        weather_provider: WeatherProvider | None = None,
        search: WebSearchTool | None = None,
        now: Callable[[], datetime] | None = None,
        max_concurrent_workers: int = 4,
        lock_timeout: float = 120.0,
    ):
        self.bus = bus
        self.store = store
        self.provider = provider
        self.config = config or Config()
        self.max_concurrent_workers = max(1, int(max_concurrent_workers))
        self.lock_timeout = lock_timeout

        cfg = self.config
        self.memory = MemoryStore(limit=cfg.agent.memory_limit)
        self.intents = SessionIntentState()
        self.classifier = IntentEngine()
        self.policy = AuthorizationPolicy(
            lambda: self.store.state,
            allow_in_groups=cfg.directives.allow_in_groups,
        )
        self.commands = CommandRouter(
            store=store,
            policy=self.policy,
            memory=self.memory,
            intents=self.intents,
            prefix=cfg.directives.prefix,
            bot_name=cfg.agent.bot_name,
        )

        self.search = search or WebSearchTool(
            provider=cfg.tools.search.provider,
            api_key=cfg.tools.search.api_key or None,
            max_results=cfg.tools.search.max_results,
            timeout=cfg.tools.search.timeout,
        )
        weather_provider = weather_provider or OpenMeteoProvider(
            geocoding_url=cfg.tools.weather.geocoding_url,
            forecast_url=cfg.tools.weather.forecast_url,
            language=cfg.tools.weather.language,
            timeout=cfg.tools.weather.timeout,
        )
        self.tools = ToolInvoker(
            intents=self.intents,
            clock=ClockTool(timezone=cfg.tools.clock.timezone, now=now),
            weather=WeatherTool(weather_provider),
            calculator=CalculatorTool(),
            search=self.search,
        )
        self.escalator = ResponseEscalator(
            provider=provider,
            memory=self.memory,
            search=self.search,
            agent=cfg.agent,
            confidence=cfg.confidence,
            intents=self.classifier,
        )

        self.session_lock = SessionLock()
        self._running = False
        self._worker_tasks: list[asyncio.Task[None]] = []

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _should_ignore(self, msg: InboundMessage, text: str) -> str | None:
        """Reason to drop *msg* before any stage runs, or None."""
        if msg.from_self:
            return "own message"
        if msg.chat_id in _IGNORED_CHATS:
            return "status broadcast"
        if not text:
            return "no text"
        if msg.is_group and not self.store.state.respond_to_groups:
            return "group replies disabled"
        return None

    async def _process_message(
        self,
        msg: InboundMessage,
        presence: bool = True,
    ) -> OutboundMessage | None:
        """
        Run the pipeline for one message.

        Args:
            msg: The inbound message.
            presence: Emit read/typing hints on the bus when enabled in state.

        Returns:
            The single reply, or None when the message is dropped silently.
        """
        text = (msg.content or "").strip()
        reason = self._should_ignore(msg, text)
        if reason:
            logger.debug(f"Ignoring message in {msg.chat_id}: {reason}")
            return None

        key = msg.session_key
        preview = text[:80] + "..." if len(text) > 80 else text
        logger.info(f"Processing message from {msg.channel}:{msg.sender_id} in {msg.chat_id}: {preview}")

        if presence and self.store.state.auto_read:
            await self._presence(msg, "read")

        # A pending slot is consumed by the next message whatever it turns out to be.
        pending = self.intents.consume(key)

        # ── Directives ──
        directive = self.commands.parse(text)
        if directive is not None:
            result = await self.commands.handle(directive, msg)
            logger.info(f"Directive {directive.name!r} in {key}: denied={result.denied} mutated={result.mutated}")
            return self._reply(msg, result.reply)

        # ── Global switches ──
        state = self.store.state
        if not (state.bot_active and state.reply_active):
            logger.debug(f"Bot inactive (bot={state.bot_active}, reply={state.reply_active}); dropping")
            return None

        intent = self.classifier.detect(text)

        # ── Fixed identity answers ──
        if intent.name == CREATOR:
            return self._reply(msg, self.config.identity.creator_answer, route="creator")
        if intent.name == ORIGIN_DATE:
            return self._reply(msg, self.config.identity.origin_date_answer, route="origin_date")

        # ── Slot follow-up ──
        if pending is not None:
            if presence:
                await self._typing(msg)
            answer = await self.tools.resolve_pending(key, pending, text)
            return self._reply(msg, answer, route="slot")

        # ── Deterministic tools ──
        if self.tools.handles(intent):
            if presence and self.tools.needs_network(intent):
                await self._typing(msg)
            answer = await self.tools.invoke(key, intent, text)
            return self._reply(msg, answer, route=intent.name)

        # ── AI with fallback ──
        if presence:
            await self._typing(msg)
        answer = await self.escalator.respond(key, text)
        return self._reply(msg, answer, route="ai")

    def _reply(self, msg: InboundMessage, content: str | None, route: str = "") -> OutboundMessage | None:
        if not content:
            return None
        if route:
            logger.info(f"Reply to {msg.chat_id} via {route}")
        return OutboundMessage(
            channel=msg.channel,
            chat_id=msg.chat_id,
            content=content,
            reply_to=msg.message_id or None,
        )

    async def _presence(self, msg: InboundMessage, kind: str) -> None:
        await self.bus.publish_outbound(OutboundMessage(
            channel=msg.channel,
            chat_id=msg.chat_id,
            kind=kind,
            reply_to=msg.message_id or None,
        ))

    async def _typing(self, msg: InboundMessage) -> None:
        if self.store.state.auto_typing:
            await self._presence(msg, "typing")

    # ------------------------------------------------------------------
    # Worker loop
    # ------------------------------------------------------------------

    async def _dispatch_inbound(self, msg: InboundMessage) -> None:
        """Serialize per conversation, run the pipeline, publish the reply."""
        try:
            async with self.session_lock.acquire(msg.session_key, timeout=self.lock_timeout):
                response = await self._process_message(msg)
            if response:
                await self.bus.publish_outbound(response)
        except Exception:
            logger.exception(f"Error processing message in {msg.chat_id}")
            await self.bus.publish_outbound(OutboundMessage(
                channel=msg.channel,
                chat_id=msg.chat_id,
                content=GENERIC_ERROR,
            ))

    async def _worker_loop(self, worker_id: int) -> None:
        """Worker loop consuming the inbound queue."""
        while self._running:
            try:
                msg = await asyncio.wait_for(self.bus.consume_inbound(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            except asyncio.CancelledError:
                break
            try:
                await self._dispatch_inbound(msg)
            finally:
                self.bus.inbound_done()

    async def run(self) -> None:
        """Run the engine with concurrent workers until stopped."""
        self._running = True
        logger.info(f"Dispatch engine started with {self.max_concurrent_workers} workers")
        self._worker_tasks = [
            asyncio.create_task(self._worker_loop(i + 1))
            for i in range(self.max_concurrent_workers)
        ]
        try:
            await asyncio.gather(*self._worker_tasks)
        finally:
            for task in self._worker_tasks:
                task.cancel()
            await asyncio.gather(*self._worker_tasks, return_exceptions=True)
            self._worker_tasks.clear()

    def stop(self) -> None:
        """Stop the engine and cancel worker tasks."""
        self._running = False
        for task in self._worker_tasks:
            task.cancel()
        logger.info("Dispatch engine stopping")

    async def process_direct(
        self,
        content: str,
        chat_id: str = "console",
        sender_id: str = "console",
        channel: str = "console",
        chat_type: str = "private",
    ) -> str:
        """
        Process one message without the bus (CLI single-shot and tests).

        Returns:
            The reply text, or an empty string when the message was dropped.
        """
        msg = InboundMessage(
            channel=channel,
            sender_id=sender_id,
            chat_id=chat_id,
            content=content,
            chat_type=chat_type,
        )
        async with self.session_lock.acquire(msg.session_key, timeout=self.lock_timeout):
            response = await self._process_message(msg, presence=False)
        return response.content if response else ""
