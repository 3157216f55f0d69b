"""Configuration module for the agency metrics service."""

from .settings import (
    BackendSettings,
    Settings,
    StartupConfigError,
    get_backend_settings,
    get_settings,
    validate_startup_config,
)

__all__ = [
    "BackendSettings",
    "Settings",
    "StartupConfigError",
    "get_backend_settings",
    "get_settings",
    "validate_startup_config",
]
