from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from ..logging_utils import log_tagged
from ..power_state.modes import PowerMode
from ..sysfs import paths as sysfs_paths
from ..sysfs.accessor import exists, read_value, write_value

if TYPE_CHECKING:
    from ..config import Config

logger = logging.getLogger(__name__)

_SELECTED_RE = re.compile(r"\[([a-z]+)\]")


def aspm_policy_path(module_root: Optional[Path] = None) -> Path:
    root = module_root if module_root is not None else sysfs_paths.module_root()
    return root / "pcie_aspm" / "parameters" / "policy"


def read_aspm_policy(path: Path) -> Optional[str]:
    """The kernel lists every policy and brackets the active one."""

    raw, ok = read_value(path)
    if not ok:
        return None
    m = _SELECTED_RE.search(raw)
    if m:
        return m.group(1)
    return raw or None


def apply_aspm(config: "Config", mode: PowerMode, *, module_root: Optional[Path] = None) -> Optional[bool]:
    """Write the PCIe ASPM policy for *mode*.

    Returns None when nothing was attempted (not configured or no kernel
    support), else whether the kernel accepted the value.
    """

    policy = config.pcie_aspm_on_bat if mode is PowerMode.BATTERY else config.pcie_aspm_on_ac
    if not policy:
        log_tagged(logger, "pm", "pcie_aspm(%s): not configured", mode.label)
        return None

    path = aspm_policy_path(module_root)
    if not exists(path):
        log_tagged(logger, "pm", "pcie_aspm(%s): not available", mode.label)
        return None

    if write_value(path, policy):
        log_tagged(logger, "pm", "pcie_aspm(%s): %s", mode.label, policy)
        return True

    log_tagged(logger, "pm", "pcie_aspm(%s): %s not accepted", mode.label, policy)
    return False
