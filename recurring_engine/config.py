"""
Engine configuration using Pydantic settings.
"""

import logging
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings."""

    # App
    app_name: str = "Recurring Expenses"

    # Database
    database_url: str = "sqlite:///./data/db.sqlite"

    # Generation
    generation_cap: int = 365  # Max occurrences per pattern in one run

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )


# Global settings instance
settings = Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for a host process. The engine itself never calls this."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
