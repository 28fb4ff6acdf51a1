"""Audio codec power saving (snd_hda_intel, snd_ac97_codec)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from ..logging_utils import log_tagged
from ..power_state.modes import PowerMode
from ..sysfs import paths as sysfs_paths
from ..sysfs.accessor import exists, write_value

if TYPE_CHECKING:
    from ..config import Config

logger = logging.getLogger(__name__)

SOUND_MODULES = ("snd_hda_intel", "snd_ac97_codec")
# Only the HDA driver can also power down the controller.
CONTROLLER_MODULE = "snd_hda_intel"


@dataclass(frozen=True)
class SoundPowerSave:
    timeout: str
    controller: str


def resolve_sound_power_save(config: "Config", mode: PowerMode) -> Optional[SoundPowerSave]:
    """Pick the timeout for *mode* from the config fallback chain.

    ``SOUND_POWER_SAVE_ON_<mode>`` as written, then the legacy
    ``SOUND_POWER_SAVE``, then the built-in default. Non-numeric values are
    skipped. A timeout of 0 always keeps the controller powered.
    """

    key = "SOUND_POWER_SAVE_ON_BAT" if mode is PowerMode.BATTERY else "SOUND_POWER_SAVE_ON_AC"
    candidates = (config.explicit(key), config.explicit("SOUND_POWER_SAVE"), config.DEFAULTS.get(key))
    timeout = next((c for c in candidates if c and c.isdigit()), None)
    if timeout is None:
        return None

    timeout = str(int(timeout))
    if timeout == "0":
        controller = "N"
    else:
        controller = "Y" if config.sound_power_save_controller else "N"
    return SoundPowerSave(timeout=timeout, controller=controller)


def apply_sound_power_save(
    config: "Config", mode: PowerMode, *, module_root: Optional[Path] = None
) -> dict[str, bool]:
    """Returns {written path: ok} for the codec parameters that exist."""

    settings = resolve_sound_power_save(config, mode)
    if settings is None:
        log_tagged(logger, "pm", "sound_power_save(%s): not configured", mode.label)
        return {}

    root = module_root if module_root is not None else sysfs_paths.module_root()
    results: dict[str, bool] = {}
    for module in SOUND_MODULES:
        params = root / module / "parameters"

        power_save = params / "power_save"
        if exists(power_save):
            results[str(power_save)] = write_value(power_save, settings.timeout)

        if module == CONTROLLER_MODULE:
            controller = params / "power_save_controller"
            if exists(controller):
                results[str(controller)] = write_value(controller, settings.controller)

    log_tagged(
        logger, "pm", "sound_power_save(%s): timeout=%s controller=%s", mode.label, settings.timeout, settings.controller
    )
    return results
