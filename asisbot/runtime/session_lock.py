"""Per-conversation in-process lock.

Ensures that messages for the same session key are processed sequentially
while different conversations run concurrently.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class SessionLockTimeout(RuntimeError):
    """Raised when lock acquisition times out."""


class SessionLock:
    def __init__(self) -> None:
        self._local: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def acquire(self, session_key: str, timeout: float = 120.0) -> AsyncIterator[None]:
        local = self._local.setdefault(session_key, asyncio.Lock())
        self._waiters[session_key] = self._waiters.get(session_key, 0) + 1
        try:
            try:
                await asyncio.wait_for(local.acquire(), timeout=timeout)
            except TimeoutError as exc:
                raise SessionLockTimeout(f"lock timeout: {session_key}") from exc
            try:
                yield
            finally:
                local.release()
        finally:
            self._waiters[session_key] -= 1
            # Drop idle locks so the map does not grow with every chat ever seen.
            if self._waiters[session_key] == 0:
                del self._waiters[session_key]
                self._local.pop(session_key, None)

    def is_busy(self, session_key: str) -> bool:
        return session_key in self._local and self._local[session_key].locked()
