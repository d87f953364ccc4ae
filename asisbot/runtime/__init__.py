"""Runtime primitives for the dispatch engine."""

from asisbot.runtime.session_lock import SessionLock, SessionLockTimeout

__all__ = ["SessionLock", "SessionLockTimeout"]
