"""Runtime state locations.

Priority:
- POWERPILOT_RUN_DIR
- /run/powerpilot
"""

from __future__ import annotations

import os
from pathlib import Path


def run_dir() -> Path:
    p = os.environ.get("POWERPILOT_RUN_DIR")
    if p:
        return Path(p)
    return Path("/run/powerpilot")


def lock_dir() -> Path:
    return run_dir() / "locks"


def flag_dir() -> Path:
    return run_dir() / "flags"

