"""Application configuration using Pydantic Settings."""

import re
from datetime import timedelta
from functools import lru_cache
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Go-style duration units accepted by CHECK_INTERVAL (e.g. "90s", "1h30m")
_DURATION_UNITS = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")


def parse_duration(value: str) -> timedelta:
    """Parse a duration string such as "5m", "1h30m" or "3600".

    Args:
        value: Duration string; a bare number is read as seconds

    Returns:
        Parsed timedelta

    Raises:
        ValueError: If the string is not a valid duration
    """
    text = value.strip().lower()
    if not text:
        raise ValueError("empty duration")

    try:
        return timedelta(seconds=float(text))
    except (ValueError, OverflowError):
        pass

    position = 0
    seconds = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position == 0 or position != len(text):
        raise ValueError(f"invalid duration: {value!r}")

    return timedelta(seconds=seconds)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "tw2dynalist"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    CALLBACK_PORT: int = 8080

    # Twitter API
    TWITTER_CLIENT_ID: str
    TWITTER_CLIENT_SECRET: str
    TWITTER_REDIRECT_URL: str
    TW_USER: str
    TWITTER_SCOPES: str = "tweet.read users.read bookmark.read bookmark.write offline.access"
    TOKEN_FILE_PATH: str = "token.json"
    AUTH_STATE_TTL_MINUTES: int = 30

    # Dynalist API
    DYNALIST_TOKEN: str
    DYNALIST_MAX_RETRIES: int = 3
    DYNALIST_RETRY_DELAY_SECONDS: float = 2.0

    # Processing
    CACHE_FILE_PATH: str = "cache.json"
    CHECK_INTERVAL: timedelta = timedelta(hours=1)
    REMOVE_BOOKMARKS: bool = False
    CLEANUP_PROCESSED_BOOKMARKS: bool = False
    ITEM_DELAY_SECONDS: float = 0.2

    # Notifications (ntfy)
    NTFY_SERVER: str = ""
    NTFY_TOPIC: str = "tw2dynalist"
    NTFY_USERNAME: str = ""
    NTFY_PASSWORD: str = ""

    @field_validator("CHECK_INTERVAL", mode="before")
    @classmethod
    def _parse_check_interval(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_duration(value)
        return value

    @field_validator("CHECK_INTERVAL")
    @classmethod
    def _check_interval_positive(cls, value: timedelta) -> timedelta:
        if value.total_seconds() <= 0:
            raise ValueError("CHECK_INTERVAL must be positive")
        return value

    @field_validator("TW_USER")
    @classmethod
    def _strip_at_sign(cls, value: str) -> str:
        return value.strip().lstrip("@")

    @field_validator("LOG_LEVEL")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"

    @property
    def scopes(self) -> list[str]:
        """OAuth scopes as a list."""
        return self.TWITTER_SCOPES.split()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
