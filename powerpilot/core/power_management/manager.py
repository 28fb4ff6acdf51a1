"""Power policy orchestration: decide the mode, then apply every device policy."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..config import Config
from ..hardware.thinkpad import ThinkPadModel
from ..logging_utils import log_tagged
from ..monitoring.power_supply_sysfs import resolve_effective_mode
from ..power_policies.aspm import apply_aspm
from ..power_policies.audio import apply_sound_power_save
from ..power_policies.lan import disable_wake_on_lan
from ..power_policies.runtime_pm import apply_runtime_pm
from ..power_state.modes import PowerMode
from ..power_state.tracker import PowerStateTracker
from ..runtime.locks import LockManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PolicyReport:
    mode: PowerMode
    runtime_pm: dict[str, str] = field(default_factory=dict)
    aspm: Optional[bool] = None
    sound: dict[str, bool] = field(default_factory=dict)
    wol: dict[str, bool] = field(default_factory=dict)


@dataclass(frozen=True)
class ApplyOutcome:
    mode: PowerMode
    changed: bool
    manual: bool
    report: Optional[PolicyReport]


class PowerManager:
    """Applies the configured policy for AC or battery.

    The caller is expected to hold the main lock; every device is written
    independently, so an interrupted run is simply repeated by the next one.
    """

    def __init__(
        self,
        config: Config,
        *,
        model: ThinkPadModel,
        tracker: Optional[PowerStateTracker] = None,
        locks: Optional[LockManager] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.model = model
        self.tracker = tracker or PowerStateTracker()
        self.locks = locks or LockManager()
        self._sleep = sleep

    def detect_mode(self) -> PowerMode:
        return resolve_effective_mode(self.config, locks=self.locks, sleep=self._sleep)

    def current_mode(self) -> tuple[PowerMode, bool]:
        """Return (mode, is_manual): an active manual override wins."""

        manual = self.tracker.get_manual()
        if manual is not None:
            return manual, True
        return self.detect_mode(), False

    def apply_policies(self, mode: PowerMode) -> PolicyReport:
        log_tagged(logger, "pm", "apply %s (model=%s)", mode.label, self.model.model or "-")
        report = PolicyReport(
            mode=mode,
            runtime_pm=apply_runtime_pm(self.config, mode),
            aspm=apply_aspm(self.config, mode),
            sound=apply_sound_power_save(self.config, mode),
            wol=disable_wake_on_lan(self.config),
        )
        logger.info("Applied %s power policy", mode.label)
        return report

    # ---- commands

    def start(self) -> ApplyOutcome:
        """Boot/reset: forget the override and saved state, apply unconditionally."""

        self.tracker.clear_manual()
        self.tracker.clear()
        mode = self.detect_mode()
        self.tracker.compare_and_save(mode)
        return ApplyOutcome(mode=mode, changed=True, manual=False, report=self.apply_policies(mode))

    def auto(self, *, force: bool = False) -> ApplyOutcome:
        """Event trigger: apply only when the effective mode changed."""

        mode, manual = self.current_mode()
        if manual and not force:
            log_tagged(logger, "run", "auto: manual mode %s active, nothing to do", mode.label)
            return ApplyOutcome(mode=mode, changed=False, manual=True, report=None)

        changed = self.tracker.compare_and_save(mode)
        if not (changed or force):
            log_tagged(logger, "run", "auto: %s unchanged", mode.label)
            return ApplyOutcome(mode=mode, changed=False, manual=manual, report=None)

        return ApplyOutcome(mode=mode, changed=changed, manual=manual, report=self.apply_policies(mode))

    def manual(self, mode: PowerMode) -> ApplyOutcome:
        """Force *mode* until the next ``start``."""

        self.tracker.set_manual(mode)
        changed = self.tracker.compare_and_save(mode)
        return ApplyOutcome(mode=mode, changed=changed, manual=True, report=self.apply_policies(mode))
