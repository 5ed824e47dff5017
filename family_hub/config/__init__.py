"""Configuration package."""

from family_hub.config.settings import (
    ApiSettings,
    AppSettings,
    GoogleSheetsSettings,
    PushSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "ApiSettings",
    "AppSettings",
    "GoogleSheetsSettings",
    "PushSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
