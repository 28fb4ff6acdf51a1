from __future__ import annotations

import logging
import threading
import time
from typing import Iterable, Union


_last_log_times: dict[str, float] = {}
_debug_tags: frozenset[str] = frozenset()
_lock = threading.Lock()

# Trace categories understood by TLP_DEBUG.
KNOWN_TAGS = ("arg", "cfg", "lock", "pm", "ps", "run", "sysfs")


def set_debug_tags(tags: Union[str, Iterable[str], None]) -> frozenset[str]:
    """Enable tagged trace output for *tags*.

    Accepts a whitespace separated string (as found in the config file) or an
    iterable of tag names. ``all`` enables every known tag. Unknown tags are kept
    so new subsystems can trace without touching this module.
    """

    global _debug_tags

    if tags is None:
        parsed: set[str] = set()
    elif isinstance(tags, str):
        parsed = {t.strip().lower() for t in tags.split() if t.strip()}
    else:
        parsed = {str(t).strip().lower() for t in tags if str(t).strip()}

    if "all" in parsed:
        parsed.discard("all")
        parsed.update(KNOWN_TAGS)

    with _lock:
        _debug_tags = frozenset(parsed)
        return _debug_tags


def debug_enabled(tag: str) -> bool:
    with _lock:
        return tag in _debug_tags


def log_tagged(logger, tag: str, msg: str, *args) -> bool:
    """Emit a debug trace line for *tag* if that tag is enabled.

    Returns True if the message was logged.
    """

    if not debug_enabled(tag):
        return False
    logger.log(logging.DEBUG, f"[{tag}] {msg}", *args)
    return True


def log_throttled(
    logger,
    key: str,
    *,
    interval_s: float,
    level: int,
    msg: str,
    exc: BaseException | None = None,
) -> bool:
    """Log at most once per *interval_s* for a given *key*.

    Returns True if the message was logged.
    """

    now = time.monotonic()
    with _lock:
        last = _last_log_times.get(key)
        if last is not None and (now - last) < interval_s:
            return False
        _last_log_times[key] = now

    if exc is not None:
        logger.log(level, msg, exc_info=exc)
        return True

    logger.log(level, msg)
    return True
