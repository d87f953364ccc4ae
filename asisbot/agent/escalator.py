"""AI reply with memory, confidence check and web-search fallback."""

from __future__ import annotations

from typing import Protocol

from loguru import logger

from asisbot.agent.memory import MemoryStore
from asisbot.config.schema import AgentConfig, ConfidenceConfig
from asisbot.errors import ResponderError, SearchError
from asisbot.nl.intent_engine import REALTIME, IntentEngine
from asisbot.providers.base import LLMProvider

AI_UNAVAILABLE = "AI-nya lagi nggak bisa dihubungi 😅 Coba lagi sebentar ya."
SEARCH_FAILED = "Maaf, aku belum bisa cek info terbarunya sekarang 😅"
SEARCH_EMPTY = "Aku belum nemu info soal itu 😅"


class SearchProvider(Protocol):
    async def search(self, query: str) -> str: ...


def build_system_prompt(agent: AgentConfig) -> str:
    return agent.persona.format(bot_name=agent.bot_name)


def is_low_confidence(answer: str | None, policy: ConfidenceConfig) -> bool:
    """Empty, too short, or hedging answers are not worth sending as-is."""
    text = (answer or "").strip()
    if not text or len(text) < policy.min_length:
        return True
    lowered = text.lower()
    return any(h.lower() in lowered for h in policy.hedges)


class ResponseEscalator:
    """Produces the final reply when no directive or tool applies.

    1. record the user turn
    2. volatile facts (prices, news, "today") go straight to search
    3. otherwise ask the responder with persona + prior turns + new message
    4. unsure answers are replaced by a framed search result
    5. record the final reply as the assistant turn

    A responder failure returns a fixed apology and records no assistant turn.
    """

    def __init__(
        self,
        provider: LLMProvider,
        memory: MemoryStore,
        search: SearchProvider,
        agent: AgentConfig | None = None,
        confidence: ConfidenceConfig | None = None,
        intents: IntentEngine | None = None,
    ):
        self.provider = provider
        self.memory = memory
        self.search = search
        self.agent = agent or AgentConfig()
        self.confidence = confidence or ConfidenceConfig()
        self.intents = intents or IntentEngine()
        self.system_prompt = build_system_prompt(self.agent)

    def is_realtime(self, text: str) -> bool:
        return self.intents.matches(REALTIME, text)

    async def respond(self, key: str, text: str) -> str:
        history = self.memory.get(key)
        self.memory.push(key, "user", text)

        if self.is_realtime(text):
            logger.info(f"Realtime query in {key}; skipping AI, searching")
            reply = await self._search_reply(text, self.confidence.search_framing)
        else:
            try:
                answer = await self.provider.complete(self.system_prompt, history, text)
            except ResponderError as exc:
                logger.warning(f"Responder unavailable for {key}: {exc}")
                return AI_UNAVAILABLE
            if is_low_confidence(answer, self.confidence):
                logger.info(f"Low-confidence AI answer in {key}; falling back to search")
                reply = await self._search_reply(text, self.confidence.check_framing)
            else:
                reply = answer.strip()

        self.memory.push(key, "assistant", reply)
        return reply

    async def _search_reply(self, query: str, framing: str) -> str:
        try:
            summary = await self.search.search(query)
        except SearchError as exc:
            logger.warning(f"Search fallback failed for {query!r}: {exc}")
            return SEARCH_FAILED
        if not summary:
            return SEARCH_EMPTY
        return f"{framing}\n{summary}"
