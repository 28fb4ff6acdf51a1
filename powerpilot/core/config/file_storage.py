from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, Mapping, Optional

from ..logging_utils import log_tagged

_KEY_RE = re.compile(r"^[A-Z_][A-Z0-9_]*$")


def parse_assignment(line: str) -> Optional[tuple[str, str]]:
    """Parse one ``KEY=VALUE`` line.

    Values may be bare words or single/double quoted; text after an unquoted
    ``#`` is a comment. Nothing is expanded or evaluated. Returns None for
    blank lines, comments and malformed assignments.
    """

    line = line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None

    key, raw = line.split("=", 1)
    key = key.strip()
    if not _KEY_RE.match(key):
        return None

    raw = raw.strip()
    if raw[:1] in ("'", '"'):
        quote = raw[0]
        end = raw.find(quote, 1)
        if end < 0:
            return None
        rest = raw[end + 1 :].strip()
        if rest and not rest.startswith("#"):
            return None
        return key, raw[1:end]

    value = raw.split("#", 1)[0].strip()
    if any(ch in value for ch in " \t`$;|&<>()"):
        return None
    return key, value


def _drop(logger, dropped: Optional[list[str]], msg: str) -> None:
    # Collected for the caller to trace once debug tags are configured.
    if dropped is not None:
        dropped.append(msg)
    else:
        log_tagged(logger, "cfg", "%s", msg)


def parse_config_text(
    text: str, *, known_keys: Iterable[str], logger, dropped: Optional[list[str]] = None
) -> dict[str, str]:
    known = set(known_keys)
    settings: dict[str, str] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        parsed = parse_assignment(stripped)
        if parsed is None:
            _drop(logger, dropped, f"line {lineno}: malformed assignment dropped: {stripped!r}")
            continue

        key, value = parsed
        if key not in known:
            _drop(logger, dropped, f"line {lineno}: unknown key {key} dropped")
            continue

        settings[key] = value
    return settings


def load_config_settings(
    *, config_file: Path, known_keys: Iterable[str], logger, dropped: Optional[list[str]] = None
) -> dict[str, str]:
    """Load explicit settings from *config_file*.

    A missing or unreadable file is not an error: the caller falls back to
    defaults for every key.
    """

    try:
        text = config_file.read_text(encoding="utf-8", errors="ignore")
    except FileNotFoundError:
        log_tagged(logger, "cfg", "%s: not found, using defaults", config_file)
        return {}
    except OSError as exc:
        logger.warning("Could not read %s: %s", config_file, exc)
        return {}

    return parse_config_text(text, known_keys=known_keys, logger=logger, dropped=dropped)


def filter_known_settings(
    settings: Mapping[str, object], *, known_keys: Iterable[str], logger, dropped: Optional[list[str]] = None
) -> dict[str, str]:
    known = set(known_keys)
    out: dict[str, str] = {}
    for key, value in settings.items():
        if key not in known:
            _drop(logger, dropped, f"unknown key {key} dropped")
            continue
        out[key] = "" if value is None else str(value)
    return out
