"""Application configuration and settings."""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="HOUSEKEEPING_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Application
    app_name: str = "Housekeeping Scheduler"
    debug: bool = True
    api_prefix: str = "/api"

    # Room number convention (last two digits of the room number)
    suite_suffixes: List[int] = [1]
    deluxe_suffix_min: int = 2
    deluxe_suffix_max: int = 5

    # Backlog re-scan
    rescan_on_release: bool = True
    rescan_interval_seconds: float = 30.0

    # Demo roster
    seed_default_staff: bool = True

    # Logging
    log_format: str = "dev"  # dev | json
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
