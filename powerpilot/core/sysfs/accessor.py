"""Best-effort reads and writes of kernel virtual files.

None of these helpers raise on missing or unreadable files: callers always get
a usable value plus a success flag. Failures are only visible as ``sysfs``
debug traces.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

from ..logging_utils import log_tagged, log_throttled
from ..utils.exceptions import describe_os_error, is_value_rejected

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

# One warning per control path and interval; policies rewrite the same files
# on every power source change.
REJECTED_WRITE_LOG_INTERVAL_S = 300.0


def _hardware_allowed() -> bool:
    return os.environ.get("POWERPILOT_ALLOW_HARDWARE") == "1"


def _is_real_sysfs_path(path: Path) -> bool:
    try:
        return os.path.realpath(str(path)).startswith("/sys/")
    except Exception:
        return False


def exists(path: PathLike) -> bool:
    try:
        found = Path(path).exists()
    except OSError:
        found = False
    if not found:
        log_tagged(logger, "sysfs", "exists %s: nonexistent", path)
    return found


def readable(path: PathLike) -> bool:
    p = Path(path)
    try:
        return p.is_file() and os.access(p, os.R_OK)
    except OSError:
        return False


def writable(path: PathLike) -> bool:
    p = Path(path)
    try:
        return p.is_file() and os.access(p, os.W_OK)
    except OSError:
        return False


def read_value(path: PathLike) -> tuple[str, bool]:
    """Return ``(content, ok)`` with surrounding whitespace stripped."""

    p = Path(path)
    try:
        content = p.read_text(encoding="utf-8", errors="ignore").strip()
    except Exception as exc:
        log_tagged(logger, "sysfs", "read_value %s: %s", p, describe_os_error(exc))
        return "", False

    log_tagged(logger, "sysfs", "read_value %s = %r", p, content)
    return content, True


def read_numeric(path: PathLike) -> int:
    """Read an integer attribute. Failed or non-numeric reads yield 0."""

    raw, ok = read_value(path)
    if not ok:
        return 0
    try:
        return int(raw)
    except ValueError:
        log_tagged(logger, "sysfs", "read_numeric %s: not numeric (%r)", path, raw)
        return 0


def read_hex(path: PathLike) -> Optional[int]:
    """Read attributes like PCI ``vendor``/``class`` (``0x10de``)."""

    raw, ok = read_value(path)
    if not ok:
        return None
    return parse_hex_int(raw)


def parse_hex_int(text: str) -> Optional[int]:
    try:
        s = text.strip().lower()
        if s.startswith("0x"):
            s = s[2:]
        return int(s, 16)
    except Exception:
        return None


def write_value(path: PathLike, content: object) -> bool:
    """Write *content* followed by a newline. Returns True on success."""

    p = Path(path)

    # Tests must not mutate real hardware state.
    if os.environ.get("PYTEST_CURRENT_TEST") and not _hardware_allowed() and _is_real_sysfs_path(p):
        log_tagged(logger, "sysfs", "write_value %s: refused under pytest", p)
        return False

    try:
        p.write_text(f"{content}\n", encoding="utf-8")
    except Exception as exc:
        log_tagged(logger, "sysfs", "write_value %s <- %r: %s", p, content, describe_os_error(exc))
        if is_value_rejected(exc):
            log_throttled(
                logger,
                f"write_rejected:{p}",
                interval_s=REJECTED_WRITE_LOG_INTERVAL_S,
                level=logging.WARNING,
                msg=f"{p}: value {content!r} rejected by the kernel",
            )
        return False

    log_tagged(logger, "sysfs", "write_value %s <- %r", p, content)
    return True
