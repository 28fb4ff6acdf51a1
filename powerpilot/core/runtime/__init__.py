from __future__ import annotations

from .locks import TIMED_LOCK_MAX_AHEAD_S, LockManager, TimedLock

__all__ = ["LockManager", "TIMED_LOCK_MAX_AHEAD_S", "TimedLock"]
