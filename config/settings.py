"""Configuration management using pydantic-settings."""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Jikan (MyAnimeList) v4 REST API
    jikan_base_url: str = "https://api.jikan.moe/v4"
    http_timeout_seconds: float = 30.0

    # Rate limiting against the upstream API
    request_interval_seconds: float = 1.0         # min gap between call starts
    server_retry_cooldown_seconds: float = 2.0    # 429 cooldown, server-cache path
    client_retry_cooldown_seconds: float = 3.0    # 429 cooldown, client path
    max_retry_cooldown_seconds: float = 60.0
    # 0 = retry 429s forever at a fixed cooldown
    max_rate_limit_attempts: int = 6

    # Cache settings
    cache_enabled: bool = True
    cache_max_entries: int = 100                  # per segment
    client_cache_ttl_seconds: float = 2.0

    # Serverless cache endpoint
    response_max_age_seconds: int = 3600
    cors_allow_origin: str = "*"

    log_level: str = "INFO"
    user_agent: Optional[str] = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
