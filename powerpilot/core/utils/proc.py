from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(frozen=True)
class CommandResult:
    argv: tuple[str, ...]
    returncode: Optional[int]
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_command(argv: Sequence[str], *, timeout_s: float = 5.0) -> CommandResult:
    """Run an external tool (modprobe, ethtool) without a shell.

    Never raises: a missing executable yields returncode None, a timeout or
    spawn failure is reported through stderr.
    """

    args = tuple(str(a) for a in argv)
    if not args:
        return CommandResult(argv=args, returncode=None, stderr="empty command")

    if not shutil.which(args[0]):
        return CommandResult(argv=args, returncode=None, stderr=f"{args[0]}: command not found")

    try:
        proc = subprocess.run(
            list(args),
            check=False,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            timeout=timeout_s,
        )
    except subprocess.TimeoutExpired:
        return CommandResult(argv=args, returncode=None, stderr=f"timed out after {timeout_s}s")
    except OSError as exc:
        return CommandResult(argv=args, returncode=None, stderr=str(exc))

    return CommandResult(
        argv=args,
        returncode=proc.returncode,
        stdout=(proc.stdout or "").strip(),
        stderr=(proc.stderr or "").strip(),
    )

