from __future__ import annotations

from .entrypoint import main, run

__all__ = ["main", "run"]
