"""Sysfs root locations.

Every root can be redirected through an environment variable so tests can build
a fake tree under a temp dir.
"""

from __future__ import annotations

import os
from pathlib import Path


def power_supply_root() -> Path:
    return Path(os.environ.get("POWERPILOT_SYSFS_POWER_SUPPLY_ROOT", "/sys/class/power_supply"))


def dmi_root() -> Path:
    return Path(os.environ.get("POWERPILOT_SYSFS_DMI_ROOT", "/sys/class/dmi/id"))


def pci_devices_root() -> Path:
    return Path(os.environ.get("POWERPILOT_SYSFS_PCI_ROOT", "/sys/bus/pci/devices"))


def net_root() -> Path:
    return Path(os.environ.get("POWERPILOT_SYSFS_NET_ROOT", "/sys/class/net"))


def module_root() -> Path:
    # Kernel module parameters (pcie_aspm, snd_hda_intel, ...).
    return Path(os.environ.get("POWERPILOT_SYSFS_MODULE_ROOT", "/sys/module"))
