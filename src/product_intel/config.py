"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "product-intel"
    debug: bool = False
    log_level: str = "INFO"

    # Database (SQLite for local dev, PostgreSQL for prod)
    database_url: str = "sqlite+aiosqlite:///./product_intel.db"

    # API
    api_prefix: str = "/api"
    frontend_url: str = "http://localhost:4290"

    # Analysis
    staleness_hours: float = 24.0  # Scores younger than this are reused
    analysis_batch_size: int = 10
    analysis_batch_pause_seconds: float = 0.1
    rescore_limit: int = 100
    rescore_min_age_hours: float = 24.0


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
