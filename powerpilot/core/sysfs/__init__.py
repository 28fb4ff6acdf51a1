from __future__ import annotations

from .accessor import exists, read_hex, read_numeric, read_value, readable, writable, write_value

__all__ = [
    "exists",
    "read_hex",
    "read_numeric",
    "read_value",
    "readable",
    "writable",
    "write_value",
]
