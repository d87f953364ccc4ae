"""Atomic JSON persistence for bot state.

A write goes to a temp file in the target directory and is then renamed over
the destination, so a crash mid-write never leaves a truncated state file.
Writes to the same path are serialized with a per-path asyncio lock.
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Any

from loguru import logger

from asisbot.errors import PersistenceError


class AtomicFileWriter:
    """Async-safe atomic file writer.

    Usage::

        writer = AtomicFileWriter()
        await writer.write_json(path, {"botActive": True})
    """

    def __init__(self) -> None:
        self._locks: dict[Path, asyncio.Lock] = {}

    def _get_lock(self, path: Path) -> asyncio.Lock:
        resolved = path.resolve()
        if resolved not in self._locks:
            self._locks[resolved] = asyncio.Lock()
        return self._locks[resolved]

    async def write_text(self, path: Path, content: str, encoding: str = "utf-8") -> None:
        """Atomically replace *path* with *content*.

        Raises:
            PersistenceError: the directory or file could not be written.
        """
        async with self._get_lock(path):
            write_text_atomic(path, content, encoding=encoding)

    async def write_json(self, path: Path, data: Any, indent: int = 2) -> None:
        """Serialize *data* as JSON and write it atomically to *path*."""
        try:
            content = json.dumps(data, indent=indent, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"cannot serialize state for {path}: {exc}") from exc
        await self.write_text(path, content)


def write_text_atomic(path: Path, content: str, encoding: str = "utf-8") -> None:
    """Write *content* to a temp file beside *path*, then rename it into place.

    Blocking; :meth:`AtomicFileWriter.write_text` calls it under the per-path lock.
    """
    temp_path: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            os.write(fd, content.encode(encoding))
        finally:
            os.close(fd)
        Path(temp_path).replace(path)
    except OSError as exc:
        if temp_path:
            Path(temp_path).unlink(missing_ok=True)
        logger.error(f"Atomic write failed for {path}: {exc}")
        raise PersistenceError(f"atomic write failed for {path}: {exc}") from exc


_atomic_writer: AtomicFileWriter | None = None


def get_atomic_writer() -> AtomicFileWriter:
    """Return the process-wide :class:`AtomicFileWriter`."""
    global _atomic_writer
    if _atomic_writer is None:
        _atomic_writer = AtomicFileWriter()
    return _atomic_writer
