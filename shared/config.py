"""
Centralized configuration for the FigrClub session core.

All settings are loaded from environment variables with sensible defaults.
Settings are namespaced by concern (API_*, SESSION_*, CREDENTIAL_STORE_*).
"""

from functools import lru_cache
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Client identity, sent as the User-Agent
    app_name: str = "FigrClub"
    app_version: str = "0.1.0"

    # Backend API
    api_base_url: str = "http://localhost:9092/figrclub/api/v1"
    api_timeout: float = 30.0  # seconds

    # Session lifecycle
    session_check_timeout: float = 5.0  # seconds
    session_refresh_interval: float = 30.0  # seconds
    token_refresh_margin: int = 60  # seconds before JWT expiry

    # Persisted credentials
    credential_store: Literal["memory", "file"] = "memory"
    credential_store_path: str = "~/.figrclub/credentials.json"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
