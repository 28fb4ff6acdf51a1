from __future__ import annotations

from typing import Iterable, Optional

_TRUE = {"1", "y", "yes", "on", "true"}
_FALSE = {"0", "n", "no", "off", "false"}


def parse_bool(raw: object, default: bool) -> bool:
    s = str(raw if raw is not None else "").strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    return bool(default)


def _raw(self, key: str) -> str:
    try:
        return str(self._settings.get(key, self.DEFAULTS.get(key, "")) or "").strip()
    except Exception:
        return ""


def bool_prop(key: str) -> property:
    def _get(self) -> bool:
        return parse_bool(_raw(self, key), parse_bool(self.DEFAULTS.get(key), False))

    return property(_get)


def str_prop(key: str) -> property:
    def _get(self) -> str:
        return _raw(self, key)

    return property(_get)


def list_prop(key: str) -> property:
    """Whitespace separated list -> tuple of words."""

    def _get(self) -> tuple[str, ...]:
        return tuple(_raw(self, key).split())

    return property(_get)


def float_prop(key: str, *, min_v: Optional[float] = None, max_v: Optional[float] = None) -> property:
    def _get(self) -> float:
        try:
            v = float(_raw(self, key))
        except ValueError:
            v = float(self.DEFAULTS.get(key) or 0.0)
        if min_v is not None:
            v = max(float(min_v), v)
        if max_v is not None:
            v = min(float(max_v), v)
        return v

    return property(_get)


def optional_enum_prop(key: str, *, allowed: Iterable[str], aliases: Optional[dict[str, str]] = None) -> property:
    """Lower-cased value if allowed, else None (empty and invalid alike)."""

    allowed_set = {str(x).strip().lower() for x in allowed}
    alias_map = {k.lower(): v for k, v in (aliases or {}).items()}

    def _get(self) -> Optional[str]:
        v = _raw(self, key).lower()
        v = alias_map.get(v, v)
        return v if v in allowed_set else None

    return property(_get)
