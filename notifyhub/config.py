"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    app_timezone: str = Field(
        default="UTC",
        description="Timezone used for notification timestamps (IANA name or UTC offset)",
    )
    storage_backend: Literal["memory", "sql"] = Field(
        default="memory",
        description="Storage adapter used by the application notification manager",
    )
    database_url: str = Field(
        default="sqlite:///./notifications.db",
        description="Database connection URL used by SQLAlchemy when storage_backend is 'sql'",
        min_length=1,
    )
    api_prefix: str = Field(
        default="/api/notifications",
        description="Path prefix where the notification routes are mounted",
    )
    recipient_header: str = Field(
        default="X-Recipient-Id",
        description="Request header carrying the authenticated recipient identifier",
        min_length=1,
    )
    cors_allow_origins: list[str] = Field(
        default_factory=list,
        description="Origins allowed by the CORS middleware; empty disables it",
    )
    remote_base_url: str | None = Field(
        default=None,
        description="Base URL of a remote notification API used by the HTTP client",
    )
    remote_timeout: float = Field(
        default=10.0,
        description="Timeout in seconds for requests issued by the HTTP client",
        gt=0,
    )
    remote_max_concurrency: int = Field(
        default=10,
        description="Maximum concurrent requests the HTTP client issues for bulk operations",
        gt=0,
    )
    log_level: str = Field(
        default="INFO",
        description="Log level applied to the notifyhub logger hierarchy",
    )

    @field_validator("api_prefix")
    @classmethod
    def _normalize_prefix(cls, value: str) -> str:
        value = value.strip()
        if not value or value == "/":
            return ""
        if not value.startswith("/"):
            value = f"/{value}"
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
