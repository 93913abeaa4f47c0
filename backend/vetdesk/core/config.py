"""
Application configuration with environment-based settings.

This module uses Pydantic Settings for automatic environment variable loading
and validation following FastAPI best practices.
"""

import os
import tomllib
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import (
    BeforeValidator,
    PostgresDsn,
    computed_field,
)
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_list(v: Any) -> list[str] | str:
    """Parse a comma-separated string or list into a list of strings"""
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


def _load_app_version_from_pyproject() -> str:
    """Load application version from pyproject.toml"""
    try:
        pyproject_path = Path(__file__).parents[3] / "pyproject.toml"

        if not pyproject_path.exists():
            # Fallback for when running from an installed package
            return "0.0.0"

        with open(pyproject_path, "rb") as f:
            config = tomllib.load(f)
            version = config.get("project", {}).get("version")

            if not version:
                return "0.0.0"

            return version

    except (OSError, tomllib.TOMLDecodeError):
        return "0.0.0"


class Settings(BaseSettings):
    """
    Application settings with validation.

    All settings except the Google client credentials have defaults for
    local development.
    """

    model_config = SettingsConfigDict(
        # Disable .env loading when TESTING=1 (set by conftest.py)
        env_file=None if os.getenv("TESTING") else ".env",
        env_ignore_empty=True,
        extra="ignore",
        case_sensitive=True,
    )

    PROJECT_NAME: str = "Vetdesk API"
    APP_VERSION: str = _load_app_version_from_pyproject()
    PORT: int = 3000

    ENVIRONMENT: Literal["local", "development", "staging", "production"] = "local"
    LOG_LEVEL: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = "INFO"

    # Public base URL of this API, used to build the OAuth redirect URI
    PUBLIC_URL: str = "http://localhost:3000"

    # Primary web app origin (CORS)
    APP_ORIGIN: str = "http://localhost:5173"

    # Origins allowed to start a login. Entries are full origins
    # (https://ui.example.com) or host patterns; a pattern may contain a
    # single "*" which matches digits only (tenant*.app.local).
    ALLOWED_APP_ORIGINS: Annotated[list[str] | str, BeforeValidator(parse_list)] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_allowed_app_origins(self) -> list[str]:
        """Allow-list entries including the primary app origin"""
        origins = [origin.rstrip("/") for origin in self.ALLOWED_APP_ORIGINS]
        if self.APP_ORIGIN and self.APP_ORIGIN.rstrip("/") not in origins:
            origins.append(self.APP_ORIGIN.rstrip("/"))
        return origins

    # Google OIDC
    # Register at: https://console.cloud.google.com/apis/credentials
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    OIDC_ISSUER: str = "https://accounts.google.com"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def OAUTH_REDIRECT_URI(self) -> str:
        return f"{self.PUBLIC_URL.rstrip('/')}/auth/google/callback"

    # Seconds between expired-session purges
    SESSION_CLEANUP_INTERVAL_SECONDS: int = 3600

    # Database Configuration (PostgreSQL)
    # DATABASE_URL takes precedence over the POSTGRES_* fields when set
    DATABASE_URL: str | None = None
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "vetdesk"
    POSTGRES_PASSWORD: str = "changethis"
    POSTGRES_DB: str = "vetdesk"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        """Build the database connection string"""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return str(
            PostgresDsn.build(
                scheme="postgresql+psycopg",
                username=self.POSTGRES_USER,
                password=self.POSTGRES_PASSWORD,
                host=self.POSTGRES_SERVER,
                port=self.POSTGRES_PORT,
                path=self.POSTGRES_DB,
            )
        )


# Create settings instance
settings = Settings()
