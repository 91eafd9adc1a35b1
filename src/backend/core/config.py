"""
Application configuration using Pydantic Settings.

All configuration is loaded from environment variables or a local .env file.
"""

from functools import lru_cache
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Ballot Engine"
    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Keyed hash salt for voter fingerprints. Loaded once per process and
    # never exposed through the API.
    FINGERPRINT_SALT: str = ""  # Required - loaded from environment

    # Database - PostgreSQL (DATABASE_URL overrides, e.g. sqlite+aiosqlite for local runs)
    DATABASE_URL: str | None = None
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "ballots"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "ballots"
    DB_POOL_SIZE: int = 10
    DB_ECHO: bool = False

    @field_validator("FINGERPRINT_SALT")
    @classmethod
    def validate_required_secrets(cls, v: str, info: Any) -> str:
        """Validate that required secrets are set."""
        if not v:
            raise ValueError(f"{info.field_name} must be set in environment")
        return v

    @property
    def POSTGRES_URL(self) -> str:
        """Construct PostgreSQL connection URL with SSL required."""
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}?ssl=require"
        )

    @property
    def SQLALCHEMY_DATABASE_URL(self) -> str:
        """Connection URL actually used by the engine."""
        return self.DATABASE_URL or self.POSTGRES_URL

    # Vote casting
    VOTE_CAST_MAX_ATTEMPTS: int = 3  # Attempts on transient storage faults
    VOTE_CAST_RETRY_DELAY_MS: int = 50

    # Poll Configuration
    POLL_MIN_DURATION_HOURS: int = 1
    POLL_MAX_DURATION_HOURS: int = 168  # 1 week
    POLL_DEFAULT_DURATION_HOURS: int = 24
    POLL_MIN_OPTIONS: int = 2
    POLL_MAX_OPTIONS: int = 6

    # CORS - stored as comma-separated string to avoid pydantic-settings JSON parsing issues
    CORS_ORIGINS: str = "http://localhost:5000"

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        import json

        try:
            return json.loads(self.CORS_ORIGINS)
        except json.JSONDecodeError:
            return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        return self.APP_ENV in ("development", "test")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
