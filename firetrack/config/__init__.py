"""Configuration package."""

from firetrack.config.settings import (
    DEFAULT_MILESTONES,
    AppSettings,
    CoreSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "DEFAULT_MILESTONES",
    "AppSettings",
    "CoreSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
