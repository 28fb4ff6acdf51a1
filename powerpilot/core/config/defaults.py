"""Default configuration values.

Every key the config file may set must be listed here; anything else is
dropped while loading. Values are kept as strings, exactly as they would be
written in the file, and typed by the properties on ``Config``.
"""

from __future__ import annotations

DEFAULTS: dict[str, str] = {
    # 0 disables every mutating command.
    "TLP_ENABLE": "1",
    # Space separated trace tags, see logging_utils.KNOWN_TAGS.
    "TLP_DEBUG": "",
    # AC | BAT. Used when no power source can be detected.
    "TLP_DEFAULT_MODE": "",
    # 1: always use TLP_DEFAULT_MODE, ignore the actual power source.
    "TLP_PERSISTENT_DEFAULT": "0",
    # Power supply names to leave out of detection (e.g. "ucsi-source-psy-USBC000:001").
    "TLP_PS_IGNORE": "",
    # Seconds to wait before re-reading a non-discharging battery status.
    "POWER_SOURCE_RECHECK_DELAY": "0.5",
    # Runtime PM for PCI(e) devices: on | auto.
    "RUNTIME_PM_ON_AC": "on",
    "RUNTIME_PM_ON_BAT": "auto",
    # PCI addresses (e.g. "00:02.0") excluded from runtime PM.
    "RUNTIME_PM_BLACKLIST": "",
    # Drivers whose devices are excluded from runtime PM.
    "RUNTIME_PM_DRIVER_BLACKLIST": "amdgpu mei_me nouveau nvidia pcieport radeon",
    # PCI addresses always set to auto / on, regardless of the lists above.
    "RUNTIME_PM_ENABLE": "",
    "RUNTIME_PM_DISABLE": "",
    # default | performance | powersave | powersupersave. Empty: leave alone.
    "PCIE_ASPM_ON_AC": "",
    "PCIE_ASPM_ON_BAT": "",
    # Audio power save timeout in seconds, 0 disables.
    "SOUND_POWER_SAVE_ON_AC": "1",
    "SOUND_POWER_SAVE_ON_BAT": "1",
    # Legacy single value used when the _ON_AC/_ON_BAT keys are absent.
    "SOUND_POWER_SAVE": "",
    # Y | N: also power down the HDA controller when the codec sleeps.
    "SOUND_POWER_SAVE_CONTROLLER": "Y",
    # Y | N: disable wake-on-LAN on Ethernet interfaces.
    "WOL_DISABLE": "Y",
    # Testing aids.
    "X_SIMULATE_MODEL": "",
    "X_SIMULATE_AC_QUIRK": "0",
}
