"""powerpilot Config implementation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional

from ..logging_utils import log_tagged
from ._props import bool_prop, float_prop, list_prop, optional_enum_prop, str_prop
from .defaults import DEFAULTS as _DEFAULTS
from .file_storage import filter_known_settings, load_config_settings
from .paths import config_file_path

logger = logging.getLogger(__name__)

RUNTIME_PM_VALUES = ("auto", "on")
ASPM_POLICIES = ("default", "performance", "powersave", "powersupersave")


class Config:
    """Read-only view of the loaded configuration.

    Only keys listed in ``DEFAULTS`` are accepted. Values stay strings
    internally; the properties below type them.
    """

    DEFAULTS = _DEFAULTS

    def __init__(self, settings: Optional[Mapping[str, object]] = None, *, config_file: Optional[Path] = None):
        # Lines and keys rejected while loading, see log_dropped().
        self.dropped: list[str] = []
        if settings is None:
            # Recompute at runtime so tests can point the env var elsewhere.
            self.CONFIG_FILE = Path(config_file) if config_file is not None else config_file_path()
            explicit = load_config_settings(
                config_file=self.CONFIG_FILE, known_keys=self.DEFAULTS, logger=logger, dropped=self.dropped
            )
        else:
            self.CONFIG_FILE = None
            explicit = filter_known_settings(settings, known_keys=self.DEFAULTS, logger=logger, dropped=self.dropped)

        self._explicit = dict(explicit)
        self._settings = {**self.DEFAULTS, **explicit}

    def get(self, key: str) -> str:
        return str(self._settings.get(key, "") or "").strip()

    def explicit(self, key: str) -> Optional[str]:
        """Value as written in the config file, or None if the key was absent/empty."""

        v = self._explicit.get(key)
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    def log_dropped(self) -> None:
        """Trace what loading rejected. Call once debug tags are configured."""

        source = self.CONFIG_FILE or "settings"
        for msg in self.dropped:
            log_tagged(logger, "cfg", "%s: %s", source, msg)

    # ---- general

    enabled = bool_prop("TLP_ENABLE")
    debug_tags = list_prop("TLP_DEBUG")
    default_mode = optional_enum_prop("TLP_DEFAULT_MODE", allowed=("ac", "bat"), aliases={"battery": "bat"})
    persistent_default = bool_prop("TLP_PERSISTENT_DEFAULT")

    # ---- power source detection

    ps_ignore = list_prop("TLP_PS_IGNORE")
    recheck_delay_s = float_prop("POWER_SOURCE_RECHECK_DELAY", min_v=0.0, max_v=10.0)
    simulate_model = str_prop("X_SIMULATE_MODEL")
    simulate_ac_quirk = bool_prop("X_SIMULATE_AC_QUIRK")

    # ---- runtime PM

    runtime_pm_on_ac = optional_enum_prop("RUNTIME_PM_ON_AC", allowed=RUNTIME_PM_VALUES)
    runtime_pm_on_bat = optional_enum_prop("RUNTIME_PM_ON_BAT", allowed=RUNTIME_PM_VALUES)
    runtime_pm_blacklist = list_prop("RUNTIME_PM_BLACKLIST")
    runtime_pm_driver_blacklist = list_prop("RUNTIME_PM_DRIVER_BLACKLIST")
    runtime_pm_enable = list_prop("RUNTIME_PM_ENABLE")
    runtime_pm_disable = list_prop("RUNTIME_PM_DISABLE")

    # ---- PCIe ASPM

    pcie_aspm_on_ac = optional_enum_prop("PCIE_ASPM_ON_AC", allowed=ASPM_POLICIES)
    pcie_aspm_on_bat = optional_enum_prop("PCIE_ASPM_ON_BAT", allowed=ASPM_POLICIES)

    # ---- audio / network

    sound_power_save_controller = bool_prop("SOUND_POWER_SAVE_CONTROLLER")
    wol_disable = bool_prop("WOL_DISABLE")
