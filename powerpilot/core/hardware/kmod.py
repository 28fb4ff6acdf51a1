from __future__ import annotations

import logging
from typing import Callable, Iterable, Sequence

from ..utils.proc import CommandResult, run_command

logger = logging.getLogger(__name__)

Runner = Callable[[Sequence[str]], CommandResult]


def load_modules(names: Iterable[str], *, runner: Runner = run_command) -> dict[str, bool]:
    """Best-effort ``modprobe`` of each module; failures are only logged at debug."""

    results: dict[str, bool] = {}
    for name in names:
        res = runner(["modprobe", name])
        results[name] = res.ok
        if not res.ok:
            logger.debug("modprobe %s failed: %s", name, res.stderr or res.returncode)
    return results
