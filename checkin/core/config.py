# checkin/core/config.py
from typing import Literal, Optional
from pydantic import Field
from pydantic_settings import BaseSettings
import logging

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Basic application settings"""
    APP_NAME: str = "CheckIn"
    DEBUG: bool = False

    # Transcript speaker labels
    ASSISTANT_NAME: str = "Coach"
    USER_NAME: str = "You"

    # Prompt reveal
    REVEAL_MODE: Literal["none", "client", "server"] = "none"
    REVEAL_WORD_DELAY: float = 0.05
    REVEAL_SETTLE_DELAY: float = 1.5

    # Sleep prefill (hours reported by a health-data source)
    SUGGESTED_SLEEP_HOURS: Optional[float] = Field(default=None, ge=0, le=24)

    # Persistence
    PERSISTENCE_BACKEND: Literal["memory", "redis"] = "memory"
    REDIS_URL: Optional[str] = Field(default=None)
    CHECKIN_TTL_SECONDS: int = 30 * 24 * 60 * 60

    # API
    CHECKIN_API_KEY: Optional[str] = Field(default=None)
    RATE_LIMIT_TIER: Literal["default", "trusted"] = "default"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore"
    }


# Settings available as a singleton
settings = Settings()


def validate_required_settings(current: Optional[Settings] = None) -> bool:
    """Check that all settings needed by the selected backends are present"""
    current = current or settings
    missing = []

    if current.PERSISTENCE_BACKEND == "redis" and not current.REDIS_URL:
        missing.append("REDIS_URL")

    if not current.CHECKIN_API_KEY:
        missing.append("CHECKIN_API_KEY")

    if missing:
        logger.warning(f"Missing environment variables: {', '.join(missing)}")
        logger.warning("The application may not be able to provide all features.")
        return False

    return True
