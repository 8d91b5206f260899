"""Logging configuration."""

import logging
import sys

DEFAULT_LOG_LEVEL = logging.INFO

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Libraries that are chatty at INFO level
NOISY_LOGGERS = ("httpx", "httpcore", "apscheduler")

_LEVEL_ALIASES = {
    "WARN": "WARNING",
    "FATAL": "CRITICAL",
}


def resolve_log_level(level_name: str) -> int:
    """Map a level name from the environment to a logging level.

    Unknown names fall back to INFO.
    """
    name = level_name.strip().upper()
    name = _LEVEL_ALIASES.get(name, name)
    level = logging.getLevelName(name)
    if isinstance(level, int):
        return level
    return DEFAULT_LOG_LEVEL


def setup_logging(level_name: str = "INFO") -> int:
    """Configure root logging for the bot.

    Args:
        level_name: Level name such as "DEBUG", "INFO", "WARN" or "ERROR"

    Returns:
        The numeric level that was applied
    """
    level = resolve_log_level(level_name)

    logging.basicConfig(
        format=LOG_FORMAT,
        stream=sys.stdout,
        level=level,
        force=True,
    )

    noisy_level = level if level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)

    logging.getLogger(__name__).info(
        f"Log level set to: {logging.getLevelName(level)}"
    )
    return level
