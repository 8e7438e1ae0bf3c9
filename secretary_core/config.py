"""
Configuration module for the Secretary engine.

Values are read from environment variables prefixed with ``SECRETARY_``.
"""
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SECRETARY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Conversation pacing
    completion_delay_seconds: float = 1.0

    # Backend result limits
    top_issues_limit: int = 50
    task_list_preview: int = 5

    # Tracing
    trace_enabled: bool = False
    max_trace_events: int = 100

    # Text cleaning
    min_issue_description_length: int = 3


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
