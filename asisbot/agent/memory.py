"""Bounded short-term memory per conversation."""

from collections import deque
from typing import Literal, TypedDict

Role = Literal["user", "assistant"]


class MemoryEntry(TypedDict):
    role: Role
    content: str


class MemoryStore:
    """conversation id -> FIFO buffer of at most ``limit`` chat turns.

    Buffers are created lazily on the first push and live until cleared.
    """

    def __init__(self, limit: int = 8):
        if limit < 1:
            raise ValueError("memory limit must be >= 1")
        self.limit = limit
        self._buffers: dict[str, deque[MemoryEntry]] = {}

    def push(self, key: str, role: Role, content: str) -> None:
        buf = self._buffers.get(key)
        if buf is None:
            buf = self._buffers[key] = deque(maxlen=self.limit)
        buf.append({"role": role, "content": content})

    def get(self, key: str) -> list[MemoryEntry]:
        """Chronological copy of the buffer (empty when none exists)."""
        return [dict(e) for e in self._buffers.get(key, ())]  # type: ignore[misc]

    def clear(self, key: str) -> bool:
        """Drop the buffer for *key*. Returns True if one existed."""
        return self._buffers.pop(key, None) is not None

    def has(self, key: str) -> bool:
        return key in self._buffers

    def __len__(self) -> int:
        return len(self._buffers)
