"""
Configuration management using Pydantic Settings.
All parameters are loaded from environment variables with sensible defaults.
"""

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_BASE_PATH = Path(os.environ.get(
    "LEDGERLINK_BASE_PATH",
    Path.home() / ".ledgerlink",
))
ENV_FILE_PATH = APP_BASE_PATH / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGERLINK_",
        env_file=str(ENV_FILE_PATH),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)

    # Link probability model
    falloff_steepness: float = Field(default=0.0, ge=0.0, le=1.0)
    offset_days: float = Field(default=5.0)
    probability_floor: float = Field(default=0.0, ge=0.0, le=1.0)

    # Profile preview
    max_preview_rows: int = Field(default=50, ge=1)

    # Paths
    reports_dir: Path = Field(default=APP_BASE_PATH / "reports")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
