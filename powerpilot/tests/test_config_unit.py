from __future__ import annotations

from pathlib import Path

import pytest

from powerpilot.core.config import Config, parse_assignment


def _write_conf(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, text: str) -> Path:
    p = tmp_path / "powerpilot.conf"
    p.write_text(text, encoding="utf-8")
    monkeypatch.setenv("POWERPILOT_CONFIG_PATH", str(p))
    return p


def test_missing_file_uses_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("POWERPILOT_CONFIG_PATH", str(tmp_path / "absent.conf"))
    cfg = Config()

    assert cfg.enabled is True
    assert cfg.default_mode is None
    assert cfg.persistent_default is False
    assert cfg.runtime_pm_on_ac == "on"
    assert cfg.runtime_pm_on_bat == "auto"
    assert cfg.dropped == []
    assert "nvidia" in cfg.runtime_pm_driver_blacklist
    assert cfg.pcie_aspm_on_bat is None
    assert cfg.recheck_delay_s == pytest.approx(0.5)
    assert cfg.wol_disable is True


def test_file_values_are_parsed_and_typed(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write_conf(
        tmp_path,
        monkeypatch,
        "\n".join(
            [
                "# comment line",
                "",
                "TLP_DEFAULT_MODE=BAT",
                "TLP_PERSISTENT_DEFAULT=1",
                'RUNTIME_PM_BLACKLIST="00:02.0 01:00.0"  # trailing comment',
                "PCIE_ASPM_ON_BAT=powersupersave",
                "WOL_DISABLE=N",
                "POWER_SOURCE_RECHECK_DELAY=0",
                "TLP_DEBUG='ps lock'",
            ]
        ),
    )
    cfg = Config()

    assert cfg.default_mode == "bat"
    assert cfg.persistent_default is True
    assert cfg.runtime_pm_blacklist == ("00:02.0", "01:00.0")
    assert cfg.pcie_aspm_on_bat == "powersupersave"
    assert cfg.wol_disable is False
    assert cfg.recheck_delay_s == 0.0
    assert cfg.debug_tags == ("ps", "lock")


def test_malformed_and_unknown_assignments_are_dropped(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write_conf(
        tmp_path,
        monkeypatch,
        "\n".join(
            [
                "WOL_DISABLE=N",
                "NOT_A_SETTING=1",
                "lowercase_key=1",
                'RUNTIME_PM_ON_AC="auto',
                "RUNTIME_PM_ON_BAT=$(reboot)",
                "just some text",
            ]
        ),
    )
    cfg = Config()

    assert cfg.wol_disable is False
    assert cfg.explicit("NOT_A_SETTING") is None
    # Both broken lines fall back to defaults.
    assert cfg.runtime_pm_on_ac == "on"
    assert cfg.runtime_pm_on_bat == "auto"
    assert cfg.dropped == [
        "line 2: unknown key NOT_A_SETTING dropped",
        "line 3: malformed assignment dropped: 'lowercase_key=1'",
        "line 4: malformed assignment dropped: 'RUNTIME_PM_ON_AC=\"auto'",
        "line 5: malformed assignment dropped: 'RUNTIME_PM_ON_BAT=$(reboot)'",
        "line 6: malformed assignment dropped: 'just some text'",
    ]


@pytest.mark.parametrize(
    "line, expected",
    [
        ("KEY=value", ("KEY", "value")),
        ('KEY="a b"', ("KEY", "a b")),
        ("KEY='x'  # c", ("KEY", "x")),
        ("KEY=", ("KEY", "")),
        ("KEY=a b", None),
        ("KEY=`id`", None),
        ('KEY="x" trailing', None),
        ("1KEY=x", None),
        ("# KEY=x", None),
    ],
)
def test_parse_assignment(line: str, expected) -> None:
    assert parse_assignment(line) == expected


def test_invalid_enum_values_read_as_unset() -> None:
    cfg = Config({"RUNTIME_PM_ON_BAT": "sometimes", "PCIE_ASPM_ON_AC": "fast", "TLP_DEFAULT_MODE": "dock"})

    assert cfg.runtime_pm_on_bat is None
    assert cfg.pcie_aspm_on_ac is None
    assert cfg.default_mode is None


def test_explicit_distinguishes_set_from_default() -> None:
    cfg = Config({"SOUND_POWER_SAVE": "10", "SOUND_POWER_SAVE_ON_AC": ""})

    assert cfg.explicit("SOUND_POWER_SAVE") == "10"
    assert cfg.explicit("SOUND_POWER_SAVE_ON_AC") is None
    assert cfg.explicit("SOUND_POWER_SAVE_ON_BAT") is None
    assert cfg.get("SOUND_POWER_SAVE_ON_BAT") == "1"


def test_recheck_delay_is_clamped() -> None:
    assert Config({"POWER_SOURCE_RECHECK_DELAY": "-2"}).recheck_delay_s == 0.0
    assert Config({"POWER_SOURCE_RECHECK_DELAY": "600"}).recheck_delay_s == 10.0
    assert Config({"POWER_SOURCE_RECHECK_DELAY": "soon"}).recheck_delay_s == pytest.approx(0.5)
