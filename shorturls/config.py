"""Configuration management for the URL shortener service.

This module provides centralized configuration management using Pydantic BaseSettings
with environment variable support and caching for performance.

Flow Diagram — get_settings()
=============================
::
    ┌─────────────┐
    │  Call get_  │
    │  settings() │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Check cache │
    │ (lru_cache) │
    └──────┬──────┘
    HIT?   │
    ┌──────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Create  │  │ Return  │
│ Settings│  │ cached  │
│ instance│  │ value   │
└─────────┘  └─────────┘

How to Use
===========
**Step 1 — Import**::
    from shorturls.config import get_settings

**Step 2 — Get settings**::
    settings = get_settings()
    db_url = settings.DATABASE_URL

**Step 3 — Build the public link for a code**::
    short_link = f"{settings.BASE_URL}/{shortcode}"

Key Behaviours
===============
- Settings are cached after first access.
- Environment variables (and a local ``.env`` file) override defaults.
- ``REDIS_URL`` unset disables the link cache entirely.
- ``LOG_DIR`` empty keeps logging on stderr only.

Classes:
    Settings:  Pydantic model for all configuration values.
"""

__all__ = ["Settings", "get_settings"]

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "url-shortener"
    PORT: int = 4000
    BASE_URL: str = "http://localhost:4000"

    # Single frontend origin allowed to call the API from a browser
    ALLOW_ORIGIN: str = "http://localhost:3000"

    # Link store
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/app.db"

    # Optional read-through cache for the redirect path
    REDIS_URL: str | None = None
    LINK_CACHE_TTL_SECONDS: int = 3600

    # Shortcode allocation
    SHORT_CODE_LENGTH: int = 7
    SHORT_CODE_MAX_ATTEMPTS: int = 6
    DEFAULT_VALIDITY_MINUTES: int = 30

    # Stats / click pipeline
    STATS_RECENT_CLICKS_LIMIT: int = 200
    CLICK_QUEUE_SIZE: int = 1000

    # Log channels
    LOG_DIR: str | None = "./logs"
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
