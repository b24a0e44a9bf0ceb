"""
Configuration management using pydantic-settings.

Loads configuration from environment variables and .env files.
Only the ambient concerns (logging, export location) are configurable;
the calculation engine never reads settings, so identical assumptions
always give identical numbers.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Optional:
        LOG_LEVEL: Logging level
        LOG_FILE: Path for JSON-lines log output
        OUTPUT_DIR: Directory for exported model files
        DEFAULT_CURRENCY: ISO currency code stamped on exports
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    LOG_FILE: Path | None = Field(
        default=None, description="Optional JSON-lines log file"
    )

    # Directories
    OUTPUT_DIR: Path = Field(default=Path("output"), description="Export directory")

    # Presentation
    DEFAULT_CURRENCY: str = Field(
        default="USD", description="Currency code used when a record has none"
    )

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> object:
        """Accept log levels in any case."""
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("DEFAULT_CURRENCY")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        """Validate that DEFAULT_CURRENCY is a three-letter code."""
        code = v.strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError("DEFAULT_CURRENCY must be a three-letter ISO code")
        return code

    def ensure_directories(self) -> None:
        """Create the output directory if it doesn't exist."""
        self.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

    def get_model_output_dir(self, model_id: str) -> Path:
        """Get the output directory for a specific model."""
        model_dir = self.OUTPUT_DIR / model_id
        model_dir.mkdir(parents=True, exist_ok=True)
        return model_dir


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
