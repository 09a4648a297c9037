from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Follows 12-factor app configuration principles.
    """

    # env_file is only used as fallback, env vars take precedence
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_ignore_empty=True,
    )

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Storage
    DATA_FILE: str = "messages.json"

    # fail_open: a broken data file reads as an empty board
    # fail_closed: read failures surface as 500s
    READ_FAILURE_POLICY: Literal["fail_open", "fail_closed"] = "fail_open"

    # Messages
    MAX_MESSAGE_LENGTH: int = 500

    # Logging
    LOG_LEVEL: str = "INFO"

    # Front-end assets served at the web root when the directory exists
    STATIC_DIR: str = "simple-frontend"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid reading .env file on every request.
    """
    return Settings()


# Global settings instance
settings = get_settings()
