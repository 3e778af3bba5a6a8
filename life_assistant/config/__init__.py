"""Configuration package."""

from life_assistant.config.settings import (
    AppSettings,
    CommandSettings,
    GeminiSettings,
    InsightSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "CommandSettings",
    "GeminiSettings",
    "InsightSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
