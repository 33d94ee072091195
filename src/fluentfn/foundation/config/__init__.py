"""Configuration management using pydantic-settings."""

from .settings import (
    FluentSettings,
    LoggingSettings,
    RegistrySettings,
    ValidationSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "FluentSettings",
    "LoggingSettings",
    "RegistrySettings",
    "ValidationSettings",
    "clear_settings_cache",
    "get_settings",
]
