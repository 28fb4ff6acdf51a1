from __future__ import annotations

from pathlib import Path

from powerpilot.core.config import Config
from powerpilot.core.power_policies.aspm import apply_aspm, aspm_policy_path, read_aspm_policy
from powerpilot.core.power_state import PowerMode


def _policy_file(module_root: Path, content: str = "[default] performance powersave powersupersave") -> Path:
    path = aspm_policy_path(module_root)
    path.parent.mkdir(parents=True)
    path.write_text(f"{content}\n", encoding="utf-8")
    return path


def test_read_aspm_policy_returns_bracketed_token(tmp_path: Path) -> None:
    path = _policy_file(tmp_path, "default performance [powersave] powersupersave")

    assert read_aspm_policy(path) == "powersave"
    assert read_aspm_policy(tmp_path / "missing") is None


def test_apply_aspm_writes_policy_for_mode(tmp_path: Path) -> None:
    path = _policy_file(tmp_path)
    cfg = Config({"PCIE_ASPM_ON_AC": "default", "PCIE_ASPM_ON_BAT": "powersupersave"})

    assert apply_aspm(cfg, PowerMode.BATTERY, module_root=tmp_path) is True
    assert path.read_text(encoding="utf-8") == "powersupersave\n"

    assert apply_aspm(cfg, PowerMode.AC, module_root=tmp_path) is True
    assert path.read_text(encoding="utf-8") == "default\n"


def test_apply_aspm_unconfigured_or_invalid_leaves_policy_alone(tmp_path: Path) -> None:
    path = _policy_file(tmp_path)

    assert apply_aspm(Config({}), PowerMode.BATTERY, module_root=tmp_path) is None
    assert apply_aspm(Config({"PCIE_ASPM_ON_BAT": "turbo"}), PowerMode.BATTERY, module_root=tmp_path) is None
    assert path.read_text(encoding="utf-8") == "[default] performance powersave powersupersave\n"


def test_apply_aspm_without_kernel_support_is_skipped(tmp_path: Path) -> None:
    cfg = Config({"PCIE_ASPM_ON_AC": "performance"})

    assert apply_aspm(cfg, PowerMode.AC, module_root=tmp_path) is None


def test_apply_aspm_failed_write_is_not_fatal(tmp_path: Path) -> None:
    # A directory in place of the parameter file makes the write fail.
    aspm_policy_path(tmp_path).mkdir(parents=True)
    cfg = Config({"PCIE_ASPM_ON_AC": "performance"})

    assert apply_aspm(cfg, PowerMode.AC, module_root=tmp_path) is False
