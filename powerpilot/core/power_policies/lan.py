from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional, Sequence

from ..logging_utils import log_tagged
from ..sysfs import paths as sysfs_paths
from ..sysfs.accessor import read_numeric
from ..utils.proc import CommandResult, run_command

if TYPE_CHECKING:
    from ..config import Config

logger = logging.getLogger(__name__)

# /sys/class/net/<iface>/type for Ethernet (include/uapi/linux/if_arp.h)
ARPHRD_ETHER = 1


def iter_ethernet_interfaces(net_root: Optional[Path] = None) -> list[str]:
    """Wired Ethernet interfaces: type ARPHRD_ETHER and no wireless attributes."""

    root = net_root if net_root is not None else sysfs_paths.net_root()
    try:
        children = sorted(root.iterdir(), key=lambda p: p.name)
    except OSError:
        return []

    out: list[str] = []
    for iface in children:
        if read_numeric(iface / "type") != ARPHRD_ETHER:
            continue
        if (iface / "wireless").exists() or (iface / "phy80211").exists():
            continue
        out.append(iface.name)
    return out


def disable_wake_on_lan(
    config: "Config",
    *,
    net_root: Optional[Path] = None,
    runner: Callable[[Sequence[str]], CommandResult] = run_command,
) -> dict[str, bool]:
    """Run ``ethtool -s <iface> wol d`` per interface when WOL_DISABLE is set."""

    if not config.wol_disable:
        log_tagged(logger, "pm", "wol: not configured")
        return {}

    results: dict[str, bool] = {}
    for iface in iter_ethernet_interfaces(net_root):
        res = runner(["ethtool", "-s", iface, "wol", "d"])
        results[iface] = res.ok
        if res.ok:
            log_tagged(logger, "pm", "wol: %s disabled", iface)
        else:
            logger.warning("WOL_DISABLE: ethtool failed for %s: %s", iface, res.stderr or res.returncode)
    return results
