"""Application settings and configuration.

Settings are loaded from environment variables (or an ``.env`` file) with
defaults suitable for a local SQLite-backed quote database.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = Field(default="Quotes", alias="APP_NAME")

    # Database configuration; a bare file path is accepted as well as a URL.
    database_url: str = Field(default="sqlite:///./quotes.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    sqlite_busy_timeout: float = Field(default=30.0, alias="SQLITE_BUSY_TIMEOUT")

    # Web page gating, "user:password". Empty disables authentication.
    web_auth: str | None = Field(default=None, alias="WEB_AUTH")
    web_host: str = Field(default="127.0.0.1", alias="WEB_HOST")
    web_port: int = Field(default=8080, alias="WEB_PORT")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def database_location(self) -> str:
        """Return the database location as a SQLAlchemy URL.

        Returns:
            ``database_url`` unchanged when it already names a dialect,
            otherwise a SQLite URL pointing at the given file path.
        """
        return normalize_location(self.database_url)


def normalize_location(location: str) -> str:
    """Turn a bare file path into a SQLite URL, leaving URLs untouched.

    Raises:
        ValueError: If ``location`` is empty.
    """
    location = location.strip()
    if not location:
        raise ValueError("database location is empty")
    if "://" in location:
        return location
    if location == ":memory:":
        return "sqlite://"
    return f"sqlite:///{location}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
