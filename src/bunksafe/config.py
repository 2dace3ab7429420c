"""Application configuration and logging setup."""
import logging
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.logging import RichHandler


class Settings(BaseSettings):
    """Settings loaded from environment variables (prefix ``BUNKSAFE_``)."""

    model_config = SettingsConfigDict(
        env_prefix="BUNKSAFE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    DB_PATH: str = str(Path.home() / ".bunksafe" / "bunksafe.db")
    DB_TIMEOUT: float = 5.0
    LOG_LEVEL: str = "WARNING"

    # Read-side loading
    FETCH_RETRIES: int = 3
    FETCH_BACKOFF_SECONDS: float = 0.5

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        return str(v).upper()

    @field_validator("FETCH_RETRIES")
    @classmethod
    def at_least_one_attempt(cls, v: int) -> int:
        return max(1, v)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(level: str = "WARNING") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
