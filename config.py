"""Runtime configuration for the sport centre booking service."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from SPORTCENTRE_* environment variables or a .env file."""

    app_name: str = "Sport Centre Booking API"
    app_version: str = "1.0.0"
    timezone: str = "Asia/Hong_Kong"
    sweeper_enabled: bool = True
    sweep_interval_seconds: int = Field(default=3600, ge=1)
    log_level: str = "INFO"
    seed_catalogue: bool = True

    model_config = SettingsConfigDict(env_prefix="SPORTCENTRE_", env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
