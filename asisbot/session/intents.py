"""Pending multi-turn slots, one per conversation.

A pending intent is consumed by the next message that reaches the
conversational stages, whether or not that message resolves it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, slots=True)
class AwaitingCityForWeather:
    """A weather request is waiting for the user to name a city."""

    original_text: str = ""
    created_at: datetime = field(default_factory=datetime.now)


# Only one variant today; new slot kinds join this union.
PendingIntent = AwaitingCityForWeather


class SessionIntentState:
    """conversation id -> PendingIntent."""

    def __init__(self) -> None:
        self._pending: dict[str, PendingIntent] = {}

    def get(self, key: str) -> PendingIntent | None:
        return self._pending.get(key)

    def set(self, key: str, intent: PendingIntent) -> None:
        """Install *intent*, replacing any previous one for *key*."""
        self._pending[key] = intent

    def consume(self, key: str) -> PendingIntent | None:
        """Pop and return the pending intent for *key*, leaving it Idle."""
        return self._pending.pop(key, None)

    def clear(self, key: str) -> None:
        self._pending.pop(key, None)

    def is_idle(self, key: str) -> bool:
        return key not in self._pending

    def __len__(self) -> int:
        return len(self._pending)
