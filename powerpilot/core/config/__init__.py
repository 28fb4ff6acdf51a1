"""powerpilot configuration.

Parses the ``KEY=VALUE`` config file into a typed, read-only ``Config``.
"""

from __future__ import annotations

from .config import ASPM_POLICIES, RUNTIME_PM_VALUES, Config
from .defaults import DEFAULTS
from .file_storage import load_config_settings, parse_assignment
from .paths import config_file_path

__all__ = [
    "ASPM_POLICIES",
    "Config",
    "DEFAULTS",
    "RUNTIME_PM_VALUES",
    "config_file_path",
    "load_config_settings",
    "parse_assignment",
]
