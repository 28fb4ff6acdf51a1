from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from typing import Iterable

from powerpilot.core.logging_utils import set_debug_tags

logger = logging.getLogger(__name__)

MAIN_LOCK_ID = "powerpilot"
MAIN_LOCK_TIMEOUT_S = 2.0


def configure_logging(*, debug_tags: Iterable[str] = (), use_syslog: bool = False) -> None:
    """Configure root logging for the CLI.

    Small and best-effort: if callers already configured logging handlers,
    only the debug tags are updated.
    """

    tags = set_debug_tags(tuple(debug_tags))

    root = logging.getLogger()
    if root.handlers:
        return

    debug = bool(os.environ.get("POWERPILOT_DEBUG")) or bool(tags)
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if use_syslog and os.path.exists("/dev/log"):
        try:
            handler = logging.handlers.SysLogHandler(address="/dev/log")
        except OSError as exc:
            logger.debug("syslog unavailable: %s", exc)
            return
        handler.setFormatter(logging.Formatter("powerpilot[%(process)d]: %(name)s: %(message)s"))
        root.addHandler(handler)


def has_root_privilege() -> bool:
    return os.geteuid() == 0
