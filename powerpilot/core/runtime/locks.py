"""File-based advisory locks, timed locks and run flags.

Exclusive locks use ``fcntl.flock`` on ``<lock_dir>/<id>.lock``. The marker
file only exists while a lock is held, which is what :meth:`LockManager.peek`
looks at. Peeking is a coarse hint: only an acquisition attempt proves
exclusion.

Timed locks carry no handle. Each one is an empty marker file named
``timed_<id>_<unix-expiry>``, so a lock expires on its own even if the process
that set it died.
"""

from __future__ import annotations

import fcntl
import logging
import math
import os
import time
from contextlib import contextmanager, suppress
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Callable, Iterator, Optional

from ..logging_utils import log_tagged
from . import paths

logger = logging.getLogger(__name__)

# A timed lock further ahead than this cannot have been set by us (durations
# used here are far shorter), so the marker is assumed to be corrupt, for
# example written before a wall-clock jump. This is a heuristic, not a
# guarantee.
TIMED_LOCK_MAX_AHEAD_S = 120

_TIMED_PREFIX = "timed_"


@dataclass(frozen=True)
class TimedLock:
    lock_id: str
    expiry: int
    path: Path


class LockManager:
    """Exclusive locks keyed by id, plus timed locks and run flags."""

    def __init__(
        self,
        lock_dir: Optional[Path] = None,
        *,
        flag_dir: Optional[Path] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
        poll_interval_s: float = 0.05,
    ) -> None:
        self.lock_dir = Path(lock_dir) if lock_dir is not None else paths.lock_dir()
        self.flag_dir = Path(flag_dir) if flag_dir is not None else paths.flag_dir()
        self._clock = clock
        self._sleep = sleep
        self._poll_interval_s = float(poll_interval_s)
        self._handles: dict[str, IO[str]] = {}

    # ---- exclusive locks

    def lock_path(self, lock_id: str) -> Path:
        return self.lock_dir / f"{lock_id}.lock"

    def acquire_blocking(self, lock_id: str, timeout_s: float) -> bool:
        return self._acquire(lock_id, timeout_s=max(0.0, float(timeout_s)))

    def acquire_nonblocking(self, lock_id: str) -> bool:
        return self._acquire(lock_id, timeout_s=0.0)

    def _open(self, lock_id: str) -> Optional[IO[str]]:
        path = self.lock_path(lock_id)
        try:
            self.lock_dir.mkdir(parents=True, exist_ok=True)
            return open(path, "a+", encoding="utf-8")
        except OSError as exc:
            log_tagged(logger, "lock", "open %s failed: %s", path, exc)
            return None

    def _still_linked(self, fh: IO[str], lock_id: str) -> bool:
        # A previous holder may have unlinked the marker between our open() and
        # flock(); holding a lock on a deleted inode excludes nobody.
        try:
            return os.fstat(fh.fileno()).st_ino == os.stat(self.lock_path(lock_id)).st_ino
        except OSError:
            return False

    def _acquire(self, lock_id: str, *, timeout_s: float) -> bool:
        if lock_id in self._handles:
            return True

        deadline = time.monotonic() + timeout_s
        while True:
            fh = self._open(lock_id)
            if fh is None:
                return False

            try:
                fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
            except OSError:
                fh.close()
                if time.monotonic() >= deadline:
                    log_tagged(logger, "lock", "acquire %s: busy (timeout %.1fs)", lock_id, timeout_s)
                    return False
                self._sleep(self._poll_interval_s)
                continue

            if not self._still_linked(fh, lock_id):
                fh.close()
                continue

            fh.seek(0)
            fh.truncate()
            fh.write(f"pid={os.getpid()}\n")
            fh.flush()
            self._handles[lock_id] = fh
            log_tagged(logger, "lock", "acquire %s: ok", lock_id)
            return True

    def release(self, lock_id: str) -> None:
        """Release *lock_id* and remove its marker. No-op if not held."""

        fh = self._handles.pop(lock_id, None)
        if fh is None:
            return

        # Unlink while still holding the lock so waiters re-open a fresh file.
        with suppress(OSError):
            self.lock_path(lock_id).unlink()
        with suppress(OSError):
            fcntl.flock(fh.fileno(), fcntl.LOCK_UN)
        fh.close()
        log_tagged(logger, "lock", "release %s", lock_id)

    def peek(self, lock_id: str) -> bool:
        """Best-effort: does a marker for *lock_id* exist right now?"""

        found = self.lock_path(lock_id).exists()
        log_tagged(logger, "lock", "peek %s: %s", lock_id, found)
        return found

    @contextmanager
    def locked(self, lock_id: str, *, timeout_s: Optional[float] = None) -> Iterator[bool]:
        """Scoped acquisition; yields whether the lock was obtained.

        Without *timeout_s* the attempt is non-blocking. The lock is released
        on every exit path.
        """

        if timeout_s is None:
            acquired = self.acquire_nonblocking(lock_id)
        else:
            acquired = self.acquire_blocking(lock_id, timeout_s)
        try:
            yield acquired
        finally:
            if acquired:
                self.release(lock_id)

    # ---- timed locks

    def _now(self) -> int:
        return int(self._clock())

    def timed_locks(self, lock_id: str) -> list[TimedLock]:
        prefix = f"{_TIMED_PREFIX}{lock_id}_"
        try:
            candidates = sorted(self.lock_dir.glob(f"{prefix}*"))
        except OSError:
            return []

        out: list[TimedLock] = []
        for path in candidates:
            suffix = path.name[len(prefix):]
            # "timed_a_b_123" belongs to id "a_b", not "a".
            if not suffix.isdigit():
                continue
            out.append(TimedLock(lock_id=lock_id, expiry=int(suffix), path=path))
        return out

    def _drop_timed(self, lock: TimedLock, reason: str) -> None:
        with suppress(OSError):
            lock.path.unlink()
        log_tagged(logger, "lock", "timed %s: removed %s marker %s", lock.lock_id, reason, lock.path.name)

    def set_timed_lock(self, lock_id: str, duration_s: float) -> bool:
        """Lock *lock_id* for *duration_s* seconds from now, rounded up to whole seconds.

        Durations beyond ``TIMED_LOCK_MAX_AHEAD_S`` are refused: such a marker
        would read as corrupt on the next check.
        """

        if duration_s > TIMED_LOCK_MAX_AHEAD_S:
            log_tagged(
                logger, "lock", "timed %s: %.1fs exceeds %ds, not set", lock_id, duration_s, TIMED_LOCK_MAX_AHEAD_S
            )
            return False

        now = self._now()
        for lock in self.timed_locks(lock_id):
            if lock.expiry <= now:
                self._drop_timed(lock, "expired")

        expiry = now + math.ceil(duration_s)
        path = self.lock_dir / f"{_TIMED_PREFIX}{lock_id}_{expiry}"
        try:
            self.lock_dir.mkdir(parents=True, exist_ok=True)
            path.touch()
        except OSError as exc:
            log_tagged(logger, "lock", "timed %s: set failed: %s", lock_id, exc)
            return False

        log_tagged(logger, "lock", "timed %s: set until %d", lock_id, expiry)
        return True

    def check_timed_lock(self, lock_id: str) -> bool:
        """True while a valid, unexpired timed lock exists for *lock_id*.

        Expired and implausible (too far ahead) markers are deleted.
        """

        now = self._now()
        active = False
        for lock in self.timed_locks(lock_id):
            if lock.expiry > now + TIMED_LOCK_MAX_AHEAD_S:
                self._drop_timed(lock, "corrupt")
            elif lock.expiry > now:
                active = True
            else:
                self._drop_timed(lock, "expired")

        log_tagged(logger, "lock", "timed %s: locked=%s", lock_id, active)
        return active

    # ---- run flags

    def _flag_path(self, name: str) -> Path:
        return self.flag_dir / name

    def set_run_flag(self, name: str) -> bool:
        try:
            self.flag_dir.mkdir(parents=True, exist_ok=True)
            self._flag_path(name).touch()
        except OSError as exc:
            log_tagged(logger, "run", "set_run_flag %s failed: %s", name, exc)
            return False
        log_tagged(logger, "run", "set_run_flag %s", name)
        return True

    def reset_run_flag(self, name: str) -> None:
        with suppress(OSError):
            self._flag_path(name).unlink()
        log_tagged(logger, "run", "reset_run_flag %s", name)

    def check_run_flag(self, name: str) -> bool:
        return self._flag_path(name).exists()
