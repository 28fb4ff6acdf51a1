"""Power source detection from /sys/class/power_supply.

Status files are noisy: batteries report ``Unknown``/``Not charging`` for a
moment after the charger is unplugged, some USB-C ports expose extra supplies
and peripherals register their own batteries. Detection therefore walks all
supplies in name order and lets a Mains/USB supply decide outright, while a
battery only contributes a tentative result.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from ..logging_utils import log_tagged
from ..power_state.modes import PowerMode
from ..sysfs import paths as sysfs_paths
from ..sysfs.accessor import read_numeric, read_value

if TYPE_CHECKING:
    from ..config import Config
    from ..runtime import LockManager

logger = logging.getLogger(__name__)

# Supplies that are never the system's power source: HID peripherals (mice,
# pens, gamepads) and the per-port UCSI entries of some USB-C controllers.
PS_IGNORE_RE = re.compile(
    r"^(hid-|ucsi-source-psy-|wacom_battery|ps-controller-battery|sony_controller_battery"
    r"|nintendo_switch_controller_battery)"
)

# Held by a battery discharge run; detection must not treat it as unplugged.
DISCHARGE_LOCK_ID = "discharge"

DEFAULT_RECHECK_DELAY_S = 0.5


class SupplyType(str, Enum):
    MAINS = "Mains"
    USB = "USB"
    BATTERY = "Battery"
    OTHER = "Other"

    @classmethod
    def parse(cls, raw: str) -> "SupplyType":
        s = (raw or "").strip().lower()
        if s == "mains":
            return cls.MAINS
        # USB, USB_C, USB_PD, USB_DCP, ...
        if s.startswith("usb"):
            return cls.USB
        if s == "battery":
            return cls.BATTERY
        return cls.OTHER


class SupplyStatus(str, Enum):
    DISCHARGING = "Discharging"
    CHARGING = "Charging"
    IDLE = "Idle"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, raw: str) -> "SupplyStatus":
        s = (raw or "").strip().lower()
        if s == "discharging":
            return cls.DISCHARGING
        if s == "charging":
            return cls.CHARGING
        if s in ("not charging", "full", "idle"):
            return cls.IDLE
        return cls.UNKNOWN


@dataclass(frozen=True)
class PowerSupplyDevice:
    path: Path
    type: SupplyType
    online: bool
    status: SupplyStatus

    @property
    def name(self) -> str:
        return self.path.name


def is_ignored(name: str, ignore: Iterable[str] = ()) -> bool:
    return bool(PS_IGNORE_RE.match(name)) or name in set(ignore)


def read_supply_status(device_path: Path) -> SupplyStatus:
    raw, ok = read_value(device_path / "status")
    if not ok:
        return SupplyStatus.UNKNOWN
    return SupplyStatus.parse(raw)


def iter_power_supplies(
    power_supply_root: Optional[Path] = None, *, ignore: Iterable[str] = ()
) -> list[PowerSupplyDevice]:
    """Enumerate the live power supplies, sorted by name, minus ignored ones."""

    root = power_supply_root if power_supply_root is not None else sysfs_paths.power_supply_root()
    ignore = tuple(ignore)

    try:
        children = sorted(root.iterdir(), key=lambda p: p.name)
    except OSError:
        log_tagged(logger, "ps", "%s: not available", root)
        return []

    devices: list[PowerSupplyDevice] = []
    for child in children:
        if not child.is_dir():
            continue
        if is_ignored(child.name, ignore):
            log_tagged(logger, "ps", "%s: ignored", child.name)
            continue

        raw_type, ok = read_value(child / "type")
        typ = SupplyType.parse(raw_type) if ok else SupplyType.OTHER
        devices.append(
            PowerSupplyDevice(
                path=child,
                type=typ,
                online=read_numeric(child / "online") == 1,
                status=read_supply_status(child) if typ is SupplyType.BATTERY else SupplyStatus.UNKNOWN,
            )
        )
    return devices


def detect_power_supply(
    *,
    power_supply_root: Optional[Path] = None,
    ignore: Iterable[str] = (),
    simulate_ac_quirk: bool = False,
    discharge_active: Optional[Callable[[], bool]] = None,
    recheck_delay_s: float = DEFAULT_RECHECK_DELAY_S,
    sleep: Callable[[float], None] = time.sleep,
) -> PowerMode:
    """Return the current power source: AC, BATTERY or UNKNOWN.

    - The first Mains/USB supply decides and ends the scan: online means AC,
      offline means battery.
    - A discharging battery means battery, unless a discharge run is active
      (then AC, final). Any other battery status is read again after
      *recheck_delay_s* to get past lagging updates; the outcome is kept only
      until a Mains/USB supply later in the list decides.
    - No usable supply at all gives UNKNOWN.
    """

    result = PowerMode.UNKNOWN

    for dev in iter_power_supplies(power_supply_root, ignore=ignore):
        if dev.type in (SupplyType.MAINS, SupplyType.USB):
            if simulate_ac_quirk:
                log_tagged(logger, "ps", "%s: %s skipped (simulated AC quirk)", dev.name, dev.type.value)
                continue
            if dev.online:
                log_tagged(logger, "ps", "%s: %s online -> AC", dev.name, dev.type.value)
                return PowerMode.AC
            log_tagged(logger, "ps", "%s: %s offline -> battery", dev.name, dev.type.value)
            return PowerMode.BATTERY

        if dev.type is not SupplyType.BATTERY:
            log_tagged(logger, "ps", "%s: type %s skipped", dev.name, dev.type.value)
            continue

        if result is PowerMode.BATTERY:
            continue

        status = dev.status
        if status is SupplyStatus.DISCHARGING:
            if discharge_active is not None and discharge_active():
                log_tagged(logger, "ps", "%s: discharging under forced discharge -> AC", dev.name)
                return PowerMode.AC
            log_tagged(logger, "ps", "%s: discharging -> battery", dev.name)
            result = PowerMode.BATTERY
            continue

        if recheck_delay_s > 0:
            sleep(recheck_delay_s)
        status = read_supply_status(dev.path)
        result = PowerMode.BATTERY if status is SupplyStatus.DISCHARGING else PowerMode.AC
        log_tagged(
            logger, "ps", "%s: %s after %.2fs recheck -> %s", dev.name, status.value, recheck_delay_s, result.label
        )

    log_tagged(logger, "ps", "detect_power_supply -> %s", result.label)
    return result


def resolve_effective_mode(
    config: "Config",
    *,
    locks: Optional["LockManager"] = None,
    power_supply_root: Optional[Path] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> PowerMode:
    """Return the mode to apply: always AC or BATTERY.

    ``TLP_PERSISTENT_DEFAULT`` pins ``TLP_DEFAULT_MODE`` regardless of the
    hardware. Otherwise an undetectable source falls back to
    ``TLP_DEFAULT_MODE`` (AC when unset).
    """

    default = PowerMode.from_token(config.default_mode)

    if config.persistent_default and default is not None:
        log_tagged(logger, "ps", "persistent default -> %s", default.label)
        return default

    discharge_active = (lambda: locks.peek(DISCHARGE_LOCK_ID)) if locks is not None else None
    mode = detect_power_supply(
        power_supply_root=power_supply_root,
        ignore=config.ps_ignore,
        simulate_ac_quirk=config.simulate_ac_quirk,
        discharge_active=discharge_active,
        recheck_delay_s=config.recheck_delay_s,
        sleep=sleep,
    )
    if mode is PowerMode.UNKNOWN:
        mode = default or PowerMode.AC
        log_tagged(logger, "ps", "power source unknown, using default -> %s", mode.label)
    return mode

