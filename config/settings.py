"""Configuration management using pydantic-settings."""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DISKUTO_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Diskuto API the content is read from
    api_url: str = "http://localhost:8080"
    internal_api_url: Optional[str] = None

    # Item cache: signed items never change, so no TTL
    item_cache_max_entries: int = 10_000

    # Profile cache: profiles can be edited, serve stale while refreshing
    profile_cache_max_entries: int = 5_000
    profile_cache_ttl_seconds: float = 5 * 60

    # Max enrichments in flight per page load
    enrichment_concurrency: int = 5

    # Page sizes
    home_page_max_count: int = 10
    user_page_max_count: int = 30
    comments_max_count: int = 100

    log_level: str = "INFO"


settings = Settings()
