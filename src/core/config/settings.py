# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the
EduPortal client. Settings are loaded from environment variables with
sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.portal_api.base_url)
    'http://localhost:8080'
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PortalAPISettings(BaseSettings):
    """Portal REST API configuration.

    Attributes:
        base_url: Base URL of the portal backend.
        timeout: Request timeout in seconds.
        role_header: Header carrying the caller's role.
        elevated_role: Role used when retrying a request rejected with 403.
        max_role_retries: Number of escalated retries after a 403 (0 or 1).
        persist_elevated_role: Whether a successful escalation sticks for
            later requests.
    """

    model_config = SettingsConfigDict(
        env_prefix="PORTAL_API_",
        extra="ignore",
    )

    base_url: str = "http://localhost:8080"
    timeout: float = 30.0
    role_header: str = "X-User-Role"
    elevated_role: str = "admin"
    max_role_retries: int = Field(default=1, ge=0, le=1)
    persist_elevated_role: bool = True

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        """Drop trailing slashes so paths can be joined safely."""
        return value.rstrip("/")

    @property
    def is_secure(self) -> bool:
        """Check whether the API is reached over HTTPS."""
        return self.base_url.startswith("https://")


class AuthSettings(BaseSettings):
    """Credentials used to seed the client at startup.

    The login flow lives outside this package; these values only provide
    the initial token and role, which can later be replaced through
    CredentialStore.refresh().

    Attributes:
        token: Bearer token for the portal API.
        user_role: Role of the signed-in user.
        user_id: Identifier of the signed-in user.
    """

    model_config = SettingsConfigDict(
        env_prefix="PORTAL_AUTH_",
        extra="ignore",
    )

    token: SecretStr | None = None
    user_role: str | None = None
    user_id: str | None = None


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment.
        debug: Enable debug mode.
        log_level: Logging level.
        portal_api: Portal API settings.
        auth: Startup credential settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    # Subsettings - loaded with their own env prefixes
    portal_api: PortalAPISettings = Field(default_factory=PortalAPISettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with insecure defaults.
        """
        if self.environment == "production":
            if self.debug:
                raise ValueError(
                    "Debug mode must be disabled in production. Set DEBUG=false."
                )
            if not self.portal_api.is_secure:
                raise ValueError(
                    "Portal API must be reached over HTTPS in production. "
                    "Set PORTAL_API_BASE_URL to an https:// URL."
                )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
