"""Config path helpers."""

from __future__ import annotations

import os
from pathlib import Path


def config_file_path() -> Path:
    """Return the powerpilot config file path.

    Priority:
    - POWERPILOT_CONFIG_PATH (explicit file override)
    - /etc/powerpilot.conf
    """

    p = os.environ.get("POWERPILOT_CONFIG_PATH")
    if p:
        return Path(p)
    return Path("/etc/powerpilot.conf")
