"""Environment-based configuration using pydantic-settings.

Example:
    >>> from fluentfn.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.validation.strict
    True

    # Or with environment variables:
    # FLUENTFN_LOG_LEVEL=DEBUG
    # FLUENTFN_VALIDATION_STRICT=false
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FLUENTFN_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "text"] = "text"
    include_timestamps: bool = True

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class ValidationSettings(BaseSettings):
    """Structural validator behaviour."""

    model_config = SettingsConfigDict(
        env_prefix="FLUENTFN_VALIDATION_",
        extra="ignore",
    )

    strict: bool = Field(
        default=True,
        description="Reject type coercion (e.g. '1' for an int) in structural validators",
    )


class RegistrySettings(BaseSettings):
    """Host function table behaviour."""

    model_config = SettingsConfigDict(
        env_prefix="FLUENTFN_REGISTRY_",
        extra="ignore",
    )

    allow_replace: bool = Field(
        default=False,
        description="Allow registering a second function under an existing name",
    )


class FluentSettings(BaseSettings):
    """Root settings, loaded from FLUENTFN_* environment variables and .env.

    Example environment variables:
        FLUENTFN_DEBUG=true
        FLUENTFN_LOG_LEVEL=DEBUG
        FLUENTFN_LOG_FORMAT=json
        FLUENTFN_VALIDATION_STRICT=false
        FLUENTFN_REGISTRY_ALLOW_REPLACE=true
    """

    model_config = SettingsConfigDict(
        env_prefix="FLUENTFN_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    debug: bool = Field(default=False, description="Log every pipeline invocation at DEBUG")

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    validation: ValidationSettings = Field(default_factory=ValidationSettings)
    registry: RegistrySettings = Field(default_factory=RegistrySettings)


@lru_cache(maxsize=1)
def get_settings() -> FluentSettings:
    """Get the global settings instance (cached)."""
    return FluentSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
