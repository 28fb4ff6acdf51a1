"""Persisted power state and manual mode override.

Both live as one-token files under the run directory: ``last_pwr`` holds the
integer code of the last applied mode (0 = AC, 1 = battery), ``manual_mode``
the mode forced by ``powerpilot ac|bat``.
"""

from __future__ import annotations

import logging
import os
from contextlib import suppress
from pathlib import Path
from typing import Optional

from ..logging_utils import log_tagged
from ..runtime import paths
from ..sysfs.accessor import read_value, write_value
from .modes import ModeLike, PowerMode, valid_mode

logger = logging.getLogger(__name__)


class PowerStateTracker:
    def __init__(self, run_dir: Optional[Path] = None) -> None:
        base = Path(run_dir) if run_dir is not None else paths.run_dir()
        self.state_file = base / "last_pwr"
        self.manual_file = base / "manual_mode"

    def _write(self, path: Path, mode: PowerMode) -> bool:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            log_tagged(logger, "run", "mkdir %s failed: %s", path.parent, exc)
            return False
        return write_value(path, mode.code)

    # ---- last observed state

    def get_saved(self) -> PowerMode:
        raw, ok = read_value(self.state_file)
        if not ok:
            return PowerMode.UNKNOWN
        return PowerMode.from_code(raw)

    def compare_and_save(self, mode: ModeLike) -> bool:
        """Persist *mode* and report whether it differs from the saved state.

        Anything other than AC/battery counts as changed, so the caller
        re-applies its policy, and is not persisted. An unchanged mode only
        refreshes the file's mtime.
        """

        current = valid_mode(mode)
        if current is None:
            log_tagged(logger, "run", "compare_and_save(%r): invalid mode, treated as changed", mode)
            return True

        saved = self.get_saved()
        if saved is current:
            try:
                os.utime(self.state_file)
            except OSError as exc:
                log_tagged(logger, "run", "touch %s failed: %s", self.state_file, exc)
            log_tagged(logger, "run", "compare_and_save(%s): unchanged", current.label)
            return False

        self._write(self.state_file, current)
        log_tagged(logger, "run", "compare_and_save(%s): changed from %s", current.label, saved.label)
        return True

    def clear(self) -> None:
        with suppress(OSError):
            self.state_file.unlink()
        log_tagged(logger, "run", "saved power state cleared")

    # ---- manual override

    def set_manual(self, mode: ModeLike) -> bool:
        target = valid_mode(mode)
        if target is None:
            return False
        ok = self._write(self.manual_file, target)
        log_tagged(logger, "run", "set_manual(%s): %s", target.label, ok)
        return ok

    def clear_manual(self) -> None:
        with suppress(OSError):
            self.manual_file.unlink()
        log_tagged(logger, "run", "manual mode cleared")

    def get_manual(self) -> Optional[PowerMode]:
        raw, ok = read_value(self.manual_file)
        if not ok:
            return None
        mode = PowerMode.from_code(raw)
        return mode if mode is not PowerMode.UNKNOWN else None
