from __future__ import annotations

from pathlib import Path

import pytest

from powerpilot.core.config import Config
from powerpilot.core.hardware import detect_thinkpad
from powerpilot.core.power_management.manager import PowerManager
from powerpilot.core.power_state import PowerMode, PowerStateTracker
from powerpilot.core.runtime import LockManager


class FakeSystem:
    def __init__(self, root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        self.root = root
        self.ps = root / "power_supply"
        self.pci = root / "pci"
        self.modules = root / "module"
        self.net = root / "net"
        for d in (self.ps, self.pci, self.modules, self.net):
            d.mkdir(parents=True)
        monkeypatch.setenv("POWERPILOT_SYSFS_POWER_SUPPLY_ROOT", str(self.ps))
        monkeypatch.setenv("POWERPILOT_SYSFS_PCI_ROOT", str(self.pci))
        monkeypatch.setenv("POWERPILOT_SYSFS_MODULE_ROOT", str(self.modules))
        monkeypatch.setenv("POWERPILOT_SYSFS_NET_ROOT", str(self.net))

        ac = self.ps / "AC"
        ac.mkdir()
        (ac / "type").write_text("Mains\n", encoding="utf-8")
        self.plug(True)

        dev = self.pci / "0000:00:14.0"
        (dev / "power").mkdir(parents=True)
        self.control.write_text("on\n", encoding="utf-8")
        (dev / "vendor").write_text("0x8086\n", encoding="utf-8")
        (dev / "class").write_text("0x0c0330\n", encoding="utf-8")

        params = self.modules / "snd_hda_intel" / "parameters"
        params.mkdir(parents=True)
        self.sound.write_text("0\n", encoding="utf-8")

    @property
    def control(self) -> Path:
        return self.pci / "0000:00:14.0" / "power" / "control"

    @property
    def sound(self) -> Path:
        return self.modules / "snd_hda_intel" / "parameters" / "power_save"

    def plug(self, online: bool) -> None:
        (self.ps / "AC" / "online").write_text("1\n" if online else "0\n", encoding="utf-8")


@pytest.fixture
def system(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> FakeSystem:
    return FakeSystem(tmp_path / "sys", monkeypatch)


def _manager(tmp_path: Path, config: Config | None = None) -> PowerManager:
    return PowerManager(
        config or Config({"SOUND_POWER_SAVE_ON_AC": "0", "SOUND_POWER_SAVE_ON_BAT": "2"}),
        model=detect_thinkpad(simulated_model="ThinkPad T480", load_kernel_modules=False),
        tracker=PowerStateTracker(tmp_path / "run"),
        locks=LockManager(tmp_path / "run" / "locks", flag_dir=tmp_path / "run" / "flags"),
        sleep=lambda _s: None,
    )


def test_start_applies_policy_for_detected_source(tmp_path: Path, system: FakeSystem) -> None:
    manager = _manager(tmp_path)
    manager.tracker.set_manual(PowerMode.BATTERY)

    outcome = manager.start()

    assert outcome.mode is PowerMode.AC
    assert outcome.manual is False
    assert outcome.report is not None
    assert outcome.report.runtime_pm == {"0000:00:14.0": "on"}
    assert manager.tracker.get_manual() is None
    assert manager.tracker.get_saved() is PowerMode.AC
    assert system.sound.read_text(encoding="utf-8") == "0\n"


def test_auto_applies_only_on_change(tmp_path: Path, system: FakeSystem) -> None:
    manager = _manager(tmp_path)
    manager.start()

    assert manager.auto().report is None

    system.plug(False)
    outcome = manager.auto()

    assert outcome.mode is PowerMode.BATTERY
    assert outcome.changed is True
    assert system.control.read_text(encoding="utf-8") == "auto\n"
    assert system.sound.read_text(encoding="utf-8") == "2\n"
    assert manager.tracker.get_saved() is PowerMode.BATTERY


def test_auto_force_reapplies_unchanged_mode(tmp_path: Path, system: FakeSystem) -> None:
    manager = _manager(tmp_path)
    manager.start()
    system.control.write_text("auto\n", encoding="utf-8")

    outcome = manager.auto(force=True)

    assert outcome.changed is False
    assert outcome.report is not None
    assert system.control.read_text(encoding="utf-8") == "on\n"


def test_manual_mode_holds_until_start(tmp_path: Path, system: FakeSystem) -> None:
    manager = _manager(tmp_path)
    manager.start()

    outcome = manager.manual(PowerMode.BATTERY)
    assert outcome.manual is True and outcome.changed is True
    assert system.control.read_text(encoding="utf-8") == "auto\n"

    # AC is still plugged in, but the override wins.
    assert manager.current_mode() == (PowerMode.BATTERY, True)
    skipped = manager.auto()
    assert skipped.report is None and skipped.manual is True
    assert system.control.read_text(encoding="utf-8") == "auto\n"

    forced = manager.auto(force=True)
    assert forced.mode is PowerMode.BATTERY and forced.report is not None

    assert manager.start().mode is PowerMode.AC
    assert system.control.read_text(encoding="utf-8") == "on\n"


def test_unknown_source_uses_default_mode(tmp_path: Path, system: FakeSystem) -> None:
    (system.ps / "AC" / "type").write_text("UPS\n", encoding="utf-8")
    manager = _manager(tmp_path, Config({"TLP_DEFAULT_MODE": "BAT"}))

    assert manager.start().mode is PowerMode.BATTERY
