from __future__ import annotations

from enum import Enum
from typing import Optional, Union


class PowerMode(str, Enum):
    AC = "ac"
    BATTERY = "bat"
    UNKNOWN = "unknown"

    @property
    def code(self) -> int:
        return _CODES[self]

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def from_code(cls, code: object) -> "PowerMode":
        try:
            value = int(str(code).strip())
        except (TypeError, ValueError):
            return cls.UNKNOWN
        for mode, c in _CODES.items():
            if c == value:
                return mode
        return cls.UNKNOWN

    @classmethod
    def from_token(cls, token: object) -> Optional["PowerMode"]:
        """Parse ``ac``/``bat``/``battery``/``0``/``1``. None if not AC or battery."""

        if isinstance(token, PowerMode):
            return token if token is not cls.UNKNOWN else None
        if token is None:
            return None
        s = str(token).strip().lower()
        if s in ("ac", "0"):
            return cls.AC
        if s in ("bat", "battery", "1"):
            return cls.BATTERY
        return None


_CODES = {PowerMode.AC: 0, PowerMode.BATTERY: 1, PowerMode.UNKNOWN: 2}
_LABELS = {PowerMode.AC: "AC", PowerMode.BATTERY: "battery", PowerMode.UNKNOWN: "unknown"}

ModeLike = Union[PowerMode, int, str, None]


def valid_mode(mode: ModeLike) -> Optional[PowerMode]:
    """Return AC or BATTERY for a valid mode value, None for anything else."""

    if isinstance(mode, bool):
        return None
    if isinstance(mode, int):
        m = PowerMode.from_code(mode)
        return m if m is not PowerMode.UNKNOWN else None
    return PowerMode.from_token(mode)
