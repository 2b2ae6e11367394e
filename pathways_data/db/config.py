from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url

# Backend names that all mean PostgreSQL; "postgres" is the legacy scheme used by many hosts.
_POSTGRES_BACKENDS = {"postgres", "postgresql"}


class Settings(BaseSettings):
    """
    Database connection settings.

    The store URL is resolved from, in order:
      - DATABASE_URL (any SQLAlchemy URL, e.g. sqlite+aiosqlite:///./pathways.db)
      - POSTGRES_URL
      - POSTGRES_USER / POSTGRES_PASSWORD / POSTGRES_DB (+ POSTGRES_HOST, POSTGRES_PORT)
    """

    DATABASE_URL: Optional[str] = Field(
        default=None, description="Full SQLAlchemy URL; takes precedence over POSTGRES_*."
    )
    POSTGRES_URL: Optional[str] = Field(default=None, description="Full PostgreSQL URL")
    POSTGRES_USER: Optional[str] = Field(default=None)
    POSTGRES_PASSWORD: Optional[str] = Field(default=None)
    POSTGRES_DB: Optional[str] = Field(default=None)
    POSTGRES_HOST: str = Field(default="localhost")
    POSTGRES_PORT: int = Field(default=5432)

    SQL_ECHO: bool = Field(default=False, description="Log every SQL statement")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    def _url(self) -> URL:
        configured = self.DATABASE_URL or self.POSTGRES_URL
        if configured:
            return make_url(configured)
        if not (self.POSTGRES_USER and self.POSTGRES_PASSWORD and self.POSTGRES_DB):
            raise ValueError(
                "Database configuration missing: set DATABASE_URL, POSTGRES_URL, or "
                "POSTGRES_USER, POSTGRES_PASSWORD and POSTGRES_DB."
            )
        return URL.create(
            "postgresql",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            database=self.POSTGRES_DB,
        )

    @property
    def database_url(self) -> str:
        """The resolved URL as configured. Raises ValueError when nothing is configured."""
        return self._url().render_as_string(hide_password=False)

    @property
    def async_database_url(self) -> str:
        """
        URL for the AsyncEngine. PostgreSQL always goes through asyncpg; other
        backends must already name an async driver (e.g. sqlite+aiosqlite).
        """
        url = self._url()
        if url.get_backend_name() in _POSTGRES_BACKENDS:
            url = url.set(drivername="postgresql+asyncpg")
        return url.render_as_string(hide_password=False)

    @property
    def sync_database_url(self) -> str:
        """Driver-less URL for Alembic offline mode, so no sync driver needs to be installed."""
        url = self._url()
        backend = url.get_backend_name()
        url = url.set(drivername="postgresql" if backend in _POSTGRES_BACKENDS else backend)
        return url.render_as_string(hide_password=False)


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return database settings read from the environment."""
    return Settings()
