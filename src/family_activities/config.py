"""
Configuration management for Family Activities.
Supports .env files and environment variables.
"""

from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database (admin review store)
    database_url: str = "sqlite:///family_activities.db"
    database_echo: bool = False

    # Application settings
    app_name: str = "Family Activities"
    debug: bool = False
    log_level: str = "INFO"

    # Activity defaults
    default_timezone: str = "America/Los_Angeles"
    default_city: str = "Seattle"
    default_currency: str = "USD"

    # Validation thresholds
    past_date_threshold_days: int = 365
    min_title_length: int = 3
    max_title_length: int = 200
    short_description_length: int = 20

    # Payload keys searched (in order) for the record array
    container_keys: List[str] = ["events", "activities", "venues", "items", "data", "results"]

    # Mapping confidence by mapping type
    direct_confidence: float = 0.9
    fallback_confidence: float = 0.7
    fallback_step: float = 0.05
    fallback_floor: float = 0.6
    derived_confidence: float = 0.5
    default_confidence: float = 0.3

    # Score weights
    required_field_weight: float = 2.0
    optional_field_weight: float = 1.0
    absent_optional_weight: float = 0.15

    # Confidence below which a mapping is flagged for review
    low_confidence_threshold: float = 0.6

    def get_db_path(self) -> Path:
        """Extract the database file path from the URL."""
        if self.database_url.startswith("sqlite:///"):
            return Path(self.database_url.replace("sqlite:///", ""))
        return Path("family_activities.db")


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings
