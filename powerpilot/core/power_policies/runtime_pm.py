"""PCI(e) runtime power management (``power/control`` = auto | on)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Optional

from ..logging_utils import log_tagged
from ..power_state.modes import PowerMode
from ..sysfs import paths as sysfs_paths
from ..sysfs.accessor import read_hex, write_value

if TYPE_CHECKING:
    from ..config import Config

logger = logging.getLogger(__name__)

CONTROL_AUTO = "auto"
CONTROL_ON = "on"
# Pseudo value: the device is left alone.
CONTROL_BLACKLISTED = "black"

NVIDIA_VENDOR_ID = 0x10DE
NVIDIA_DRIVERS = frozenset({"nouveau", "nvidia"})
PCI_BASE_CLASS_DISPLAY = 0x03


@dataclass(frozen=True)
class DevicePolicyTarget:
    address: str
    driver: str
    vendor: Optional[int]
    device_class: Optional[int]
    control_path: Path

    @property
    def is_display(self) -> bool:
        # class is 0xBBSSPP: base class, subclass, prog-if
        return self.device_class is not None and (self.device_class >> 16) == PCI_BASE_CLASS_DISPLAY


def _bound_driver(device_dir: Path) -> str:
    link = device_dir / "driver"
    try:
        return os.path.basename(os.readlink(link))
    except OSError:
        return ""


def iter_pci_targets(pci_root: Optional[Path] = None) -> list[DevicePolicyTarget]:
    """PCI devices that expose ``power/control``, sorted by address."""

    root = pci_root if pci_root is not None else sysfs_paths.pci_devices_root()
    try:
        children = sorted(root.iterdir(), key=lambda p: p.name)
    except OSError:
        log_tagged(logger, "pm", "%s: not available", root)
        return []

    targets: list[DevicePolicyTarget] = []
    for dev in children:
        control = dev / "power" / "control"
        if not control.exists():
            continue
        targets.append(
            DevicePolicyTarget(
                address=dev.name,
                driver=_bound_driver(dev),
                vendor=read_hex(dev / "vendor"),
                device_class=read_hex(dev / "class"),
                control_path=control,
            )
        )
    return targets


def _normalize_address(addr: str) -> str:
    # Config may omit the PCI domain: "00:02.0" == "0000:00:02.0".
    a = addr.strip().lower()
    return a if a.count(":") >= 2 else f"0000:{a}"


def _address_set(addresses: Iterable[str]) -> frozenset[str]:
    return frozenset(_normalize_address(a) for a in addresses if a.strip())


def driver_blacklisted_addresses(
    targets: Iterable[DevicePolicyTarget], driver_blacklist: Iterable[str]
) -> frozenset[str]:
    drivers = frozenset(driver_blacklist)
    return frozenset(_normalize_address(t.address) for t in targets if t.driver and t.driver in drivers)


def compute_runtime_pm_control(
    target: DevicePolicyTarget,
    *,
    mode_control: str,
    address_blacklist: Iterable[str] = (),
    driver_blacklisted: Iterable[str] = (),
    driver_blacklist: Iterable[str] = (),
    enable: Iterable[str] = (),
    disable: Iterable[str] = (),
) -> str:
    """Return the ``power/control`` value for *target*, or ``CONTROL_BLACKLISTED``.

    Precedence: allow-lists (enable, then disable), address and driver
    blacklists, the Nvidia display guard, and finally *mode_control*.
    """

    addr = _normalize_address(target.address)

    if addr in _address_set(enable):
        return CONTROL_AUTO
    if addr in _address_set(disable):
        return CONTROL_ON

    if addr in _address_set(address_blacklist) or addr in _address_set(driver_blacklisted):
        return CONTROL_BLACKLISTED

    # With nouveau/nvidia blacklisted, an Nvidia GPU stays untouched even when
    # it is bound to another driver (vfio, none) or not bound at all.
    if (
        NVIDIA_DRIVERS & frozenset(driver_blacklist)
        and target.vendor == NVIDIA_VENDOR_ID
        and target.is_display
    ):
        return CONTROL_BLACKLISTED

    return mode_control


def apply_runtime_pm(
    config: "Config", mode: PowerMode, *, pci_root: Optional[Path] = None
) -> dict[str, str]:
    """Apply runtime PM for *mode*; returns {address: value written or "black"}.

    A no-op when no control value is configured for the mode.
    """

    mode_control = config.runtime_pm_on_bat if mode is PowerMode.BATTERY else config.runtime_pm_on_ac
    if not mode_control:
        log_tagged(logger, "pm", "runtime_pm(%s): not configured", mode.label)
        return {}

    targets = iter_pci_targets(pci_root)
    driver_blacklist = config.runtime_pm_driver_blacklist
    driver_blacklisted = driver_blacklisted_addresses(targets, driver_blacklist)

    applied: dict[str, str] = {}
    for target in targets:
        control = compute_runtime_pm_control(
            target,
            mode_control=mode_control,
            address_blacklist=config.runtime_pm_blacklist,
            driver_blacklisted=driver_blacklisted,
            driver_blacklist=driver_blacklist,
            enable=config.runtime_pm_enable,
            disable=config.runtime_pm_disable,
        )
        if control == CONTROL_BLACKLISTED:
            log_tagged(logger, "pm", "runtime_pm(%s): %s [%s] blacklisted", mode.label, target.address, target.driver)
            applied[target.address] = control
            continue

        if write_value(target.control_path, control):
            log_tagged(logger, "pm", "runtime_pm(%s): %s [%s] = %s", mode.label, target.address, target.driver, control)
            applied[target.address] = control
        else:
            log_tagged(logger, "pm", "runtime_pm(%s): %s write failed", mode.label, target.address)

    return applied
