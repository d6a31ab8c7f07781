# jobboard/config.py

from __future__ import annotations
import logging.config
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    # --- Core ---
    SECRET_KEY: str = Field("change-me", description="JWT signing key")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60, ge=5, le=60 * 24)
    DEBUG: bool = True  # set False in prod

    # --- Database ---
    DATABASE_URL: str = Field("sqlite:///./jobboard.db")

    # Calendar used for "deadline not yet passed" checks
    TIMEZONE: str = "UTC"

    # --- Logging ---
    LOG_LEVEL: str = "INFO"

    # --- Accounts ---
    # Registering with one of these emails yields an admin profile
    BOOTSTRAP_ADMIN_EMAILS: List[str] = Field(default_factory=list)

    # --- Email delivery ---
    EMAIL_BACKEND: str = Field("console", pattern="^(console|http)$")
    EMAIL_API_URL: Optional[str] = None
    EMAIL_API_KEY: Optional[str] = None
    EMAIL_FROM: str = "no-reply@jobboard.local"
    EMAIL_TIMEOUT_SECONDS: int = Field(15, ge=1, le=120)

    # Same (application, email type) pair inside this window is not re-queued
    NOTIFICATION_DEDUPE_SECONDS: int = Field(300, ge=0)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()


def configure_logging(level: str | None = None) -> None:
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {"format": "[{levelname}] {asctime} {name}: {message}", "style": "{"},
            },
            "handlers": {
                "console": {"class": "logging.StreamHandler", "formatter": "standard"},
            },
            "root": {"handlers": ["console"], "level": (level or settings.LOG_LEVEL).upper()},
        }
    )
