"""
Centralized application settings using Pydantic BaseSettings.

This module provides type-safe access to environment variables with validation.
All settings are loaded once at application startup.
"""

import logging
from pathlib import Path
from typing import List, Optional

from domain.exceptions import ConfigurationError
from pydantic import field_validator
from pydantic_settings import BaseSettings

# ============================================================================
# Application Constants
# ============================================================================

# Source tag recorded for memories ingested through the chat adapter
TELEGRAM_SOURCE = "telegram"

# Vector width of the default embedding model (nomic-embed-text)
EMBEDDING_DIMENSIONS = 768


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults and are validated on startup.
    """

    # Database
    database_url: str = "sqlite+aiosqlite:///./memories.db"

    # Embedding provider
    ollama_base_url: str = "http://localhost:11434"
    embedding_model: str = "nomic-embed-text"
    embedding_concurrency: int = 3
    embedding_timeout: float = 30.0

    # Chat adapter access control
    telegram_allowed_user_ids: str = ""

    # Logging
    log_level: str = "INFO"
    debug: bool = False

    @field_validator("ollama_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so endpoint paths can be appended."""
        return v.rstrip("/")

    @field_validator("embedding_concurrency")
    @classmethod
    def validate_embedding_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError("embedding_concurrency must be at least 1")
        return v

    @field_validator("embedding_timeout")
    @classmethod
    def validate_embedding_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("embedding_timeout must be positive")
        return v

    @field_validator("debug", mode="before")
    @classmethod
    def validate_debug(cls, v: Optional[str]) -> bool:
        """Parse debug from string to bool."""
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            return v.lower() == "true"
        return False

    def get_allowed_user_ids(self) -> List[int]:
        """
        Get the chat user IDs allowed to store memories.

        Returns:
            List of user IDs parsed from TELEGRAM_ALLOWED_USER_IDS
        """
        if not self.telegram_allowed_user_ids:
            return []
        try:
            return [int(uid.strip()) for uid in self.telegram_allowed_user_ids.split(",") if uid.strip()]
        except ValueError as e:
            raise ConfigurationError(f"TELEGRAM_ALLOWED_USER_IDS must be comma-separated integers: {e}") from e

    def get_log_level(self) -> int:
        """Resolve LOG_LEVEL to a logging level, with DEBUG forcing debug output."""
        if self.debug:
            return logging.DEBUG
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO

    @property
    def project_root(self) -> Path:
        """Directory containing backend/ (where the .env file lives)."""
        return Path(__file__).parent.parent.parent

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        # Allow extra fields for forward compatibility
        extra = "ignore"


# Singleton instance - load settings once at module import
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()

        # Reload settings with explicit env file path if it exists
        env_path = _settings.project_root / ".env"
        if env_path.exists():
            _settings = Settings(_env_file=str(env_path))

    return _settings


def reset_settings() -> None:
    """
    Reset the settings singleton (useful for testing).
    """
    global _settings
    _settings = None
