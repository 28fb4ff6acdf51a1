from __future__ import annotations

from .modes import PowerMode, valid_mode
from .tracker import PowerStateTracker

__all__ = ["PowerMode", "PowerStateTracker", "valid_mode"]
