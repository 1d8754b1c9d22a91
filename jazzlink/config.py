"""
Jazzlink – Application configuration.
Reads environment variables from a .env file via pydantic-settings.
"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── App ──
    APP_NAME: str = "Jazzlink"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # ── Database ──
    DATABASE_URL: str = "sqlite+aiosqlite:///./jazzlink.db"
    DB_BUSY_TIMEOUT: int = 30

    # ── JWT (issued by the identity provider) ──
    SECRET_KEY: str = "change-me-to-a-random-secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # ── Admin ──
    ADMIN_UIDS: List[str] = []

    # ── Place enrichment (Google Places v1) ──
    GOOGLE_MAPS_API_KEY: str = ""
    PLACES_API_URL: str = "https://places.googleapis.com/v1/places/"
    PLACES_TIMEOUT: int = 15


settings = Settings()
