"""Configuration management for the picksheet line checker."""
import logging
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LINECHECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Game matching
    match_threshold: float = 0.6  # Minimum weakest-link confidence for a game pair
    one_to_one_matching: bool = True  # A market game can be claimed only once

    # Team resolution
    fuzzy_min_score: float = 0.6  # Best similarity must exceed this
    fuzzy_confidence_scale: float = 0.9
    fuzzy_candidate_limit: int = 3
    verification_threshold: float = 0.7

    # Pipeline
    low_match_rate_warning: float = 0.5

    log_level: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(level: str = None) -> None:
    """Configure root logging the same way for every entry point."""
    settings = get_settings()
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
    )
