from __future__ import annotations

from .thinkpad import ThinkPadModel, ThinkPadTier, classify_model, detect_thinkpad, parse_product_version

__all__ = [
    "ThinkPadModel",
    "ThinkPadTier",
    "classify_model",
    "detect_thinkpad",
    "parse_product_version",
]
