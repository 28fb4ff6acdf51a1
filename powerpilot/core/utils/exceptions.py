from __future__ import annotations

import errno as _errno


def is_missing(exc: Exception) -> bool:
    """Best-effort check for a file or sysfs attribute that does not exist."""

    if isinstance(exc, FileNotFoundError):
        return True
    return getattr(exc, "errno", None) in (_errno.ENOENT, _errno.ENODEV)


def is_value_rejected(exc: Exception) -> bool:
    """Best-effort check for a sysfs write the kernel refused.

    Kernel parameters answer unsupported tokens with EINVAL (or EOPNOTSUPP for
    some drivers), which Python surfaces as a plain OSError.
    """

    err = getattr(exc, "errno", None)
    if err in (_errno.EINVAL, _errno.EOPNOTSUPP):
        return True

    try:
        msg = str(exc)
    except Exception:
        return False

    return "Invalid argument" in msg


def is_device_busy(exc: Exception) -> bool:
    """Best-effort check for transient 'busy' errors."""

    if getattr(exc, "errno", None) == _errno.EBUSY:
        return True

    try:
        msg = str(exc)
    except Exception:
        return False

    return "Device or resource busy" in msg


def is_permission_denied(exc: Exception) -> bool:
    """Best-effort check for permission/authorization failures.

    Used to tell "not running as root" apart from real hardware refusals when a
    sysfs write fails.
    """

    if isinstance(exc, PermissionError):
        return True

    if getattr(exc, "errno", None) in (_errno.EPERM, _errno.EACCES):
        return True

    try:
        msg = str(exc).lower()
    except Exception:
        return False

    return "permission denied" in msg or "access denied" in msg or "not permitted" in msg


def describe_os_error(exc: Exception) -> str:
    """Short classification used in trace lines."""

    if is_missing(exc):
        return "nonexistent"
    if is_permission_denied(exc):
        return "permission denied"
    if is_value_rejected(exc):
        return "rejected by kernel"
    if is_device_busy(exc):
        return "busy"
    return f"{type(exc).__name__}: {exc}"
