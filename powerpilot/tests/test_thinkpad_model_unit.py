from __future__ import annotations

from pathlib import Path

import pytest

from powerpilot.core.hardware import ThinkPadTier, detect_thinkpad, parse_product_version
from powerpilot.core.utils.proc import CommandResult


class RecordingRunner:
    def __init__(self, ok: bool = True) -> None:
        self.calls: list[list[str]] = []
        self.ok = ok

    def __call__(self, argv):
        self.calls.append(list(argv))
        return CommandResult(argv=tuple(argv), returncode=0 if self.ok else 1, stderr="" if self.ok else "FATAL")


def test_x220_is_tpsmapi_and_tpacpi() -> None:
    model = parse_product_version("ThinkPad X220")

    assert model.model == "X220"
    assert model.tier is ThinkPadTier.TPSMAPI_AND_TPACPI
    assert model.is_thinkpad
    assert model.supports_tpsmapi and model.supports_tpacpi


@pytest.mark.parametrize(
    "raw, model, tier",
    [
        ("ThinkPad T410", "T410", ThinkPadTier.TPSMAPI_ONLY),
        ("ThinkPad X201 Tablet", "X201 Tablet", ThinkPadTier.TPSMAPI_ONLY),
        ("ThinkPad T420s", "T420s", ThinkPadTier.TPSMAPI_AND_TPACPI),
        ("ThinkPad L520", "L520", ThinkPadTier.TP_NONE),
        ("ThinkPad Edge E330", "Edge E330", ThinkPadTier.TP_NONE),
        ("ThinkPad X1 Carbon 6th", "X1 Carbon 6th", ThinkPadTier.TPACPI_DEFAULT),
        ("ThinkPad T14 Gen 3", "T14 Gen 3", ThinkPadTier.TPACPI_DEFAULT),
        ("thinkpad t480", "t480", ThinkPadTier.TPACPI_DEFAULT),
    ],
)
def test_model_tiers(raw: str, model: str, tier: ThinkPadTier) -> None:
    result = parse_product_version(raw)
    assert result.model == model
    assert result.tier is tier


def test_punctuation_is_stripped_before_matching() -> None:
    result = parse_product_version("ThinkPad X220-(Tablet)!")
    assert result.model == "X220Tablet"
    assert result.tier is ThinkPadTier.TPACPI_DEFAULT

    assert parse_product_version("ThinkPad: X220").model == "X220"


def test_non_thinkpad() -> None:
    result = parse_product_version("XPS 13 9310")
    assert result.tier is ThinkPadTier.NOT_THINKPAD
    assert result.is_thinkpad is False
    assert result.model == ""
    assert result.kernel_modules == ()


@pytest.mark.parametrize(
    "raw, modules",
    [
        ("ThinkPad T410", ("tp_smapi",)),
        ("ThinkPad X220", ("tp_smapi", "acpi_call")),
        ("ThinkPad L520", ()),
        ("ThinkPad T14 Gen 3", ("acpi_call",)),
    ],
)
def test_kernel_modules_follow_tier_support(raw: str, modules: tuple) -> None:
    assert parse_product_version(raw).kernel_modules == modules


def test_detect_reads_dmi_and_loads_modules(tmp_path: Path, write_sysfs) -> None:
    write_sysfs(tmp_path / "product_version", "ThinkPad X220\n")
    runner = RecordingRunner()

    result = detect_thinkpad(dmi_root=tmp_path, runner=runner)

    assert result.model == "X220"
    assert runner.calls == [["modprobe", "tp_smapi"], ["modprobe", "acpi_call"]]


def test_detect_ignores_module_load_failures() -> None:
    runner = RecordingRunner(ok=False)
    result = detect_thinkpad(simulated_model="ThinkPad T410", runner=runner)

    assert result.tier is ThinkPadTier.TPSMAPI_ONLY
    assert runner.calls == [["modprobe", "tp_smapi"]]


def test_detect_without_dmi_is_not_thinkpad(tmp_path: Path) -> None:
    runner = RecordingRunner()
    result = detect_thinkpad(dmi_root=tmp_path / "missing", runner=runner)

    assert result.tier is ThinkPadTier.NOT_THINKPAD
    assert runner.calls == []


def test_no_module_loads_for_models_without_battery_functions() -> None:
    runner = RecordingRunner()
    detect_thinkpad(simulated_model="ThinkPad L520", runner=runner)
    detect_thinkpad(simulated_model="ThinkPad T14", runner=runner, load_kernel_modules=False)
    assert runner.calls == []
