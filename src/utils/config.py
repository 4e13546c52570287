"""
Configuration management using pydantic-settings.

Loads settings from environment variables (REGISTRY_ prefix) and .env files.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="REGISTRY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    db_path: Path = Field(
        default=Path("data") / "claims.db",
        description="SQLite database holding claims and registry state",
    )

    # Owner role
    owner_id: str = Field(
        default="registry-admin",
        description="Identity that owns a freshly created registry. Ignored once the database holds state.",
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # Notifications
    event_buffer_size: int = Field(
        default=500,
        ge=1,
        description="How many recent notifications the API keeps for GET /events",
    )

    @property
    def public_url(self) -> str:
        """Base HTTP URL the server listens on."""
        return f"http://{self.host}:{self.port}"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to avoid re-reading environment on every call.
    """
    return Settings()
