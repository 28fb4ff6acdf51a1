"""Command line entrypoint.

Owns the startup sequence (config, logging, privilege check, main lock) and
dispatches to ``PowerManager``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from powerpilot import __version__
from powerpilot.core.config import Config
from powerpilot.core.hardware import detect_thinkpad
from powerpilot.core.logging_utils import log_tagged
from powerpilot.core.monitoring.power_supply_sysfs import resolve_effective_mode
from powerpilot.core.power_management.manager import ApplyOutcome, PowerManager
from powerpilot.core.power_policies.aspm import aspm_policy_path, read_aspm_policy
from powerpilot.core.power_state import PowerMode, PowerStateTracker
from powerpilot.core.runtime import LockManager

from . import bootstrap

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="powerpilot", description="Apply AC/battery power saving policy.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--syslog", action="store_true", help="also send log lines to syslog")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("start", help="reset manual mode and apply the policy for the current power source")
    auto = sub.add_parser("auto", help="apply the policy if the power source changed (udev/event use)")
    auto.add_argument("--force", action="store_true", help="apply even if nothing changed")
    sub.add_parser("ac", help="force AC mode until the next start")
    sub.add_parser("bat", help="force battery mode until the next start")
    sub.add_parser("stat", help="show power source, saved state and model")
    return parser


def _print_outcome(outcome: ApplyOutcome) -> None:
    if outcome.report is None:
        print(f"powerpilot: {outcome.mode.label} mode unchanged.")
        return
    suffix = " (manual)" if outcome.manual else ""
    print(f"powerpilot: {outcome.mode.label} mode applied{suffix}.")


def cmd_stat(config: Config) -> int:
    tracker = PowerStateTracker()
    locks = LockManager()
    model = detect_thinkpad(simulated_model=config.simulate_model, load_kernel_modules=False)

    manual = tracker.get_manual()
    print(f"Power source  = {resolve_effective_mode(config, locks=locks).label}")
    print(f"Saved state   = {tracker.get_saved().label}")
    print(f"Manual mode   = {manual.label if manual is not None else 'none'}")
    print(f"Model         = {model.model or model.raw or 'unknown'} [{model.tier.value}]")
    print(f"PCIe ASPM     = {read_aspm_policy(aspm_policy_path()) or 'n/a'}")
    return 0


def _run_mutating(command: str, args: argparse.Namespace, config: Config) -> int:
    if not bootstrap.has_root_privilege():
        print("Error: missing root privilege.", file=sys.stderr)
        return 1

    if not config.enabled:
        print("Error: powerpilot is disabled. Set TLP_ENABLE=1 in the config file.", file=sys.stderr)
        return 0

    locks = LockManager()
    with locks.locked(bootstrap.MAIN_LOCK_ID, timeout_s=bootstrap.MAIN_LOCK_TIMEOUT_S) as acquired:
        if not acquired:
            print("Error: powerpilot is locked by another instance.", file=sys.stderr)
            return 1

        model = detect_thinkpad(simulated_model=config.simulate_model)
        manager = PowerManager(config, model=model, locks=locks)

        if command == "start":
            outcome = manager.start()
        elif command == "auto":
            outcome = manager.auto(force=bool(getattr(args, "force", False)))
        elif command == "ac":
            outcome = manager.manual(PowerMode.AC)
        else:
            outcome = manager.manual(PowerMode.BATTERY)

    _print_outcome(outcome)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = Config()
    bootstrap.configure_logging(debug_tags=config.debug_tags, use_syslog=args.syslog)
    config.log_dropped()
    log_tagged(logger, "arg", "command=%s argv=%s", args.command, list(argv) if argv is not None else sys.argv[1:])

    if args.command == "stat":
        return cmd_stat(config)
    return _run_mutating(args.command, args, config)


def run() -> None:
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(130)
    except Exception as exc:
        logger.exception("Unhandled error: %s", exc)
        sys.exit(1)
