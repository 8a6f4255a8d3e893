"""
RedeSegura - Configuration Management
Centralized configuration using pydantic-settings.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Database
    database_url: Optional[str] = None

    # API Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Submission rules
    daily_report_limit: int = 3
    description_max_length: int = 280

    # Points awarded on validation
    points_high_severity: int = 25
    points_default: int = 15

    # Clustering Settings
    cluster_threshold: float = 0.01
    map_cluster_limit: int = 10
    summary_cluster_limit: int = 5


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
