"""LiteLLM-backed generative responder (Groq by default)."""

from collections.abc import Sequence
from typing import Any, Mapping

import litellm
from litellm import acompletion
from loguru import logger

from asisbot.errors import ResponderError
from asisbot.providers.base import LLMProvider


class LiteLLMProvider(LLMProvider):
    """
    Responder using LiteLLM so any OpenAI-compatible provider can serve it.

    Model ids without a provider prefix are routed to Groq; the default model
    is ``llama-3.1-8b-instant``.
    """

    DEFAULT_PREFIX = "groq"

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        default_model: str = "groq/llama-3.1-8b-instant",
        temperature: float = 0.6,
        max_tokens: int = 1024,
        timeout: float = 30.0,
    ):
        super().__init__(api_key, api_base)
        self.default_model = default_model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

        # Disable LiteLLM logging noise
        litellm.suppress_debug_info = True
        # Drop unsupported parameters for providers
        litellm.drop_params = True

    def _resolve_model(self, model: str) -> str:
        if "/" in model:
            return model
        return f"{self.DEFAULT_PREFIX}/{model}"

    async def complete(
        self,
        system_prompt: str,
        history: Sequence[Mapping[str, str]],
        user_message: str,
        model: str | None = None,
    ) -> str:
        """
        Send one chat completion request.

        Args:
            system_prompt: Persona / behaviour instruction.
            history: Prior turns, oldest first.
            user_message: The new user turn, sent last.
            model: Override for the configured model.

        Returns:
            The reply text; empty string when the model returned no content.

        Raises:
            ResponderError: transport, auth, rate-limit or malformed response.
        """
        resolved = self._resolve_model(model or self.default_model)
        kwargs: dict[str, Any] = {
            "model": resolved,
            "messages": self.build_messages(system_prompt, history, user_message),
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "timeout": self.timeout,
        }
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.api_base:
            kwargs["api_base"] = self.api_base

        try:
            response = await acompletion(**kwargs)
        except Exception as e:
            logger.error(f"LLM call failed ({resolved}, {self._classify_error(e)}): {e}")
            raise ResponderError(str(e)) from e
        return self._parse_response(response)

    @staticmethod
    def _parse_response(response: Any) -> str:
        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, KeyError, TypeError) as e:
            raise ResponderError(f"malformed completion payload: {e}") from e
        return (content or "").strip()

    @staticmethod
    def _classify_error(exc: Exception) -> str:
        """Short reason label for logs."""
        raw = str(exc).lower()
        if "rate_limit" in raw or "429" in raw:
            return "rate_limited"
        if "timeout" in raw:
            return "timeout"
        if "authentication" in raw or "401" in raw or "403" in raw:
            return "auth"
        if "connection" in raw or "connect" in raw:
            return "connection"
        return "provider"

    def get_default_model(self) -> str:
        return self.default_model
