from __future__ import annotations

import os
import tempfile
from pathlib import Path

import pytest

from powerpilot.core.logging_utils import set_debug_tags


def _hardware_opted_in() -> bool:
    return os.environ.get("POWERPILOT_ALLOW_HARDWARE") == "1"


# Safety default: during pytest, never touch the real /run state, the real
# config file or real sysfs trees.
if not _hardware_opted_in():
    _scratch = Path(tempfile.mkdtemp(prefix="powerpilot-test-"))
    os.environ.setdefault("POWERPILOT_RUN_DIR", str(_scratch / "run"))
    os.environ.setdefault("POWERPILOT_CONFIG_PATH", str(_scratch / "powerpilot.conf"))
    for _var in (
        "POWERPILOT_SYSFS_POWER_SUPPLY_ROOT",
        "POWERPILOT_SYSFS_DMI_ROOT",
        "POWERPILOT_SYSFS_PCI_ROOT",
        "POWERPILOT_SYSFS_NET_ROOT",
        "POWERPILOT_SYSFS_MODULE_ROOT",
    ):
        os.environ.setdefault(_var, str(_scratch / "nonexistent-sysfs"))


@pytest.fixture(autouse=True)
def _reset_debug_tags():
    # Trace everything so the tagged log calls are exercised too.
    set_debug_tags("all")
    yield
    set_debug_tags(())


@pytest.fixture
def write_sysfs():
    """Write a fake sysfs attribute, creating parent dirs."""

    def _write(path: Path, content: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def run_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    d = tmp_path / "run"
    monkeypatch.setenv("POWERPILOT_RUN_DIR", str(d))
    return d
