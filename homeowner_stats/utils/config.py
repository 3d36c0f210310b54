"""
Configuration Utility - Environment Variables Management

Centralized configuration loading from .env files using pydantic-settings.
Type-safe access to all environment variables with validation.

Usage:
    from homeowner_stats.utils.config import settings

    db_path = settings.SQLITE_PATH
    redis_url = settings.REDIS_URL
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Database Configuration
    SQLITE_PATH: str = Field(default="/app/data/db/homeowners.db")

    # Data Source Access
    SOURCE_PAGE_SIZE: int = Field(default=500, ge=1)
    SOURCE_MAX_RETRIES: int = Field(default=3, ge=1)
    SOURCE_RETRY_BACKOFF: float = Field(default=0.5, ge=0)

    # Redis Configuration
    REDIS_URL: str = Field(default="redis://redis:6379/0")
    REDIS_MAX_CONNECTIONS: int = Field(default=10)
    REDIS_CHANNEL_STATS: str = Field(default="stats.portal_users")

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: Literal["json", "text"] = Field(default="json")
    LOG_OUTPUT: Literal["stdout", "stderr", "file"] = Field(default="stderr")
    LOG_FILE: str = Field(default="/app/data/logs/homeowner-stats.log")

    # Application Metadata
    ENVIRONMENT: str = Field(default="production")
    APP_NAME: str = Field(default="homeowner-stats")
    APP_VERSION: str = Field(default="0.1.0")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Singleton Settings instance
    """
    return Settings()


# Global settings instance
settings = get_settings()
