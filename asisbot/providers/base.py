"""Base interface for generative responders."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, Mapping


class LLMProvider(ABC):
    """A chat model reachable over the network.

    Implementations raise :class:`asisbot.errors.ResponderError` on any
    transport or provider failure; they never return an error text as if it
    were an answer.
    """

    def __init__(self, api_key: str | None = None, api_base: str | None = None):
        self.api_key = api_key
        self.api_base = api_base

    @staticmethod
    def build_messages(
        system_prompt: str,
        history: Sequence[Mapping[str, str]],
        user_message: str,
    ) -> list[dict[str, Any]]:
        """System prompt first, then history oldest-first, then the new user turn."""
        messages: list[dict[str, Any]] = [{"role": "system", "content": system_prompt}]
        messages.extend({"role": h["role"], "content": h["content"]} for h in history)
        messages.append({"role": "user", "content": user_message})
        return messages

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        history: Sequence[Mapping[str, str]],
        user_message: str,
    ) -> str:
        """Return the model's reply text (possibly empty)."""

    @abstractmethod
    def get_default_model(self) -> str:
        """Model identifier used when none is given."""
