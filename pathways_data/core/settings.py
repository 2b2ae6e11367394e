from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application-level settings for the data-access layer.

    This is separate from pathways_data.db.config.Settings, which focuses on the database layer.
    """

    APP_NAME: str = Field(default="Pathways Data Layer")

    # Environment label
    ENVIRONMENT: Optional[str] = Field(
        default=None, description="Environment label (dev/test/prod)"
    )
    LOG_LEVEL: str = Field(default="INFO", description="Root log level name")

    # Reference-data cache
    REFERENCE_CACHE_TTL_SECONDS: Optional[float] = Field(
        default=None,
        description="Lifetime of cached countries/pathways. Empty means cache for the process lifetime.",
    )

    # Counselor requests
    REQUEST_CREATE_MAX_ATTEMPTS: int = Field(
        default=3,
        ge=1,
        description="How many times create_request retries after a uniqueness conflict.",
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("REFERENCE_CACHE_TTL_SECONDS", mode="before")
    @classmethod
    def _parse_ttl(cls, v):
        """Treat empty strings and non-positive values as 'no expiry'."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        if float(v) <= 0:
            return None
        return v

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _normalize_level(cls, v):
        return str(v or "INFO").upper()


# PUBLIC_INTERFACE
def get_app_settings() -> AppSettings:
    """
    Return a new AppSettings instance populated from environment variables.

    Note:
      A new instance is built on each call; callers that need a stable view
      should hold on to the returned object.
    """
    return AppSettings()
