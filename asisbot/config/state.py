"""Persisted bot state: toggles and the admin list.

``BotState`` is immutable; :class:`BotStateStore` is its single owner and the
only place a new state is installed. Everything else reads ``store.state``.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict

from asisbot.config.loader import convert_keys, convert_to_camel
from asisbot.utils.atomic_io import AtomicFileWriter, get_atomic_writer


class BotState(BaseModel):
    """Process-wide switches plus the ordered admin list (``admins[0]`` is the owner)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    bot_active: bool = True
    reply_active: bool = True
    respond_to_groups: bool = False
    notify_non_admins: bool = True
    auto_read: bool = False
    auto_typing: bool = True
    admins: tuple[str, ...] = ()

    @property
    def owner(self) -> str | None:
        return self.admins[0] if self.admins else None

    def to_record(self) -> dict[str, Any]:
        """camelCase dict as stored on disk."""
        data = self.model_dump()
        data["admins"] = list(self.admins)
        return convert_to_camel(data)


class BotStateStore:
    """Single writer for :class:`BotState`.

    Directive handlers run inside :meth:`transaction`, which serializes all
    writers so a read-check-write on the admin list cannot interleave with
    another directive. :meth:`commit` installs the new state first and then
    persists it; a failed save leaves the in-memory state in place.
    """

    def __init__(
        self,
        path: Path,
        state: BotState | None = None,
        writer: AtomicFileWriter | None = None,
    ) -> None:
        self.path = path
        self._state = state or BotState()
        self._writer = writer or get_atomic_writer()
        self._lock = asyncio.Lock()

    @classmethod
    def load(cls, path: Path, writer: AtomicFileWriter | None = None) -> "BotStateStore":
        """Read *path* merged over defaults. Missing or corrupt files give defaults."""
        state = BotState()
        if path.exists():
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
                if not isinstance(raw, dict):
                    raise ValueError("state file must hold a JSON object")
                state = BotState.model_validate(convert_keys(raw))
            except (OSError, ValueError) as exc:
                logger.warning(f"Failed to load bot state from {path}: {exc}; using defaults")
        return cls(path, state=state, writer=writer)

    @property
    def state(self) -> BotState:
        return self._state

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["BotStateStore"]:
        async with self._lock:
            yield self

    async def commit(self, **changes: Any) -> BotState:
        """Install ``state.model_copy(update=changes)`` and persist it.

        Must be called inside :meth:`transaction`.

        Raises:
            PersistenceError: the save failed; the new state is kept anyway.
        """
        if "admins" in changes:
            changes["admins"] = tuple(changes["admins"])
        self._state = self._state.model_copy(update=changes)
        await self.save()
        return self._state

    async def save(self) -> None:
        """Write the current state to :attr:`path` atomically.

        Raises:
            PersistenceError: the file could not be written.
        """
        await self._writer.write_json(self.path, self._state.to_record())
