"""ThinkPad model detection.

The model string comes from DMI ``product_version`` (e.g. ``ThinkPad X220``).
The bare model is classified into the battery-management interface it
supports:

- ``TPSMAPI_ONLY``: older models driven by the ``tp_smapi`` module only.
- ``TPSMAPI_AND_TPACPI``: Sandy Bridge generation; ``tp_smapi`` for status,
  ACPI calls (``acpi_call``) for thresholds.
- ``TP_NONE``: budget lines without any battery functions.
- ``TPACPI_DEFAULT``: everything else is assumed to use the newest ACPI
  interface.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from ..logging_utils import log_tagged
from ..sysfs import paths as sysfs_paths
from ..sysfs.accessor import read_value
from ..utils.proc import run_command
from .kmod import Runner, load_modules

logger = logging.getLogger(__name__)


class ThinkPadTier(str, Enum):
    TPSMAPI_ONLY = "tpsmapi-only"
    TPSMAPI_AND_TPACPI = "tpsmapi-and-tpacpi"
    TP_NONE = "none"
    TPACPI_DEFAULT = "tpacpi"
    NOT_THINKPAD = "not-thinkpad"


# Matched in this order; the sets are disjoint.
RE_TPSMAPI_ONLY = re.compile(
    r"^(R400|R500|SL[345]00|T400s?|T410[is]?|T500|T510|W500|W510|W70[01](ds)?"
    r"|X200[st]?|X200 Tablet|X201[is]?|X201 Tablet|X301)$"
)
RE_TPSMAPI_AND_TPACPI = re.compile(r"^(T420[is]?|T520i?|W520|X1|X220[it]?|X220 Tablet)$")
RE_TP_NONE = re.compile(
    r"^(L[45]12|L[45]20|SL[345]10|X100e|X1[23]0e|Edge( [0-9]+.*)?|Edge E[0-9]+|Edge S430|G[45]0)$"
)

_THINKPAD_RE = re.compile(r"thinkpad", re.IGNORECASE)
_VENDOR_PREFIX_RE = re.compile(r"^.*?thinkpad\s*", re.IGNORECASE)
_CLEAN_RE = re.compile(r"[^A-Za-z0-9 ]")


@dataclass(frozen=True)
class ThinkPadModel:
    raw: str
    model: str
    tier: ThinkPadTier

    @property
    def is_thinkpad(self) -> bool:
        return self.tier is not ThinkPadTier.NOT_THINKPAD

    @property
    def supports_tpsmapi(self) -> bool:
        return self.tier in (ThinkPadTier.TPSMAPI_ONLY, ThinkPadTier.TPSMAPI_AND_TPACPI)

    @property
    def supports_tpacpi(self) -> bool:
        return self.tier in (ThinkPadTier.TPSMAPI_AND_TPACPI, ThinkPadTier.TPACPI_DEFAULT)

    @property
    def kernel_modules(self) -> tuple[str, ...]:
        mods: list[str] = []
        if self.supports_tpsmapi:
            mods.append("tp_smapi")
        if self.supports_tpacpi:
            mods.append("acpi_call")
        return tuple(mods)


def classify_model(model: str) -> ThinkPadTier:
    if RE_TPSMAPI_ONLY.match(model):
        return ThinkPadTier.TPSMAPI_ONLY
    if RE_TPSMAPI_AND_TPACPI.match(model):
        return ThinkPadTier.TPSMAPI_AND_TPACPI
    if RE_TP_NONE.match(model):
        return ThinkPadTier.TP_NONE
    return ThinkPadTier.TPACPI_DEFAULT


def parse_product_version(raw: str) -> ThinkPadModel:
    """Classify a DMI product_version string (no side effects)."""

    cleaned = _CLEAN_RE.sub("", raw or "").strip()
    if not _THINKPAD_RE.search(cleaned):
        return ThinkPadModel(raw=cleaned, model="", tier=ThinkPadTier.NOT_THINKPAD)

    model = _VENDOR_PREFIX_RE.sub("", cleaned, count=1).strip()
    return ThinkPadModel(raw=cleaned, model=model, tier=classify_model(model))


def detect_thinkpad(
    *,
    simulated_model: Optional[str] = None,
    dmi_root: Optional[Path] = None,
    load_kernel_modules: bool = True,
    runner: Runner = run_command,
) -> ThinkPadModel:
    """Detect the ThinkPad model once for this run.

    *simulated_model* replaces the DMI read (config ``X_SIMULATE_MODEL``).
    Kernel modules matching the tier are loaded best-effort.
    """

    if simulated_model:
        raw = simulated_model
        log_tagged(logger, "run", "simulating model %r", raw)
    else:
        root = dmi_root if dmi_root is not None else sysfs_paths.dmi_root()
        raw, _ok = read_value(root / "product_version")

    result = parse_product_version(raw)
    log_tagged(logger, "run", "model %r -> %s (%s)", result.raw, result.model or "-", result.tier.value)

    if load_kernel_modules and result.kernel_modules:
        load_modules(result.kernel_modules, runner=runner)

    return result
