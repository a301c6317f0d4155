"""
Paywall config: typed wrapper over app.core.config for preview size and banner text.
"""
from __future__ import annotations

from app.core.config import settings


def get_preview_ratio() -> float:
    return getattr(settings, "preview_ratio", 0.65)


def get_preview_max_words() -> int:
    return getattr(settings, "preview_max_words", 1000)


def get_upgrade_price_text() -> str:
    return getattr(settings, "upgrade_price_text", "$1/month")
