"""Application configuration settings.

This module provides centralized configuration management using environment
variables with sensible defaults. Cache sizing is code configuration, see
``legalcache.cache.instances.CacheConfig``.
"""

import logging
import os
from dataclasses import dataclass

import structlog


def _get_bool_env(name: str, default: bool = False) -> bool:
    """Get a boolean value from environment variable.

    Args:
        name: Environment variable name.
        default: Default value if not set.

    Returns:
        Boolean value from environment.
    """
    value = os.getenv(name, "").lower()
    if value in ("true", "1", "yes", "on"):
        return True
    if value in ("false", "0", "no", "off"):
        return False
    return default


@dataclass
class Settings:
    """Application settings loaded from environment variables.

    Attributes:
        LOG_LEVEL: Logging level.
        LOG_JSON: Render log events as JSON instead of console output.
    """

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables.

        Returns:
            Settings instance populated from environment.
        """
        return cls(
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
            LOG_JSON=_get_bool_env("LOG_JSON", default=False),
        )


def configure_logging(settings: Settings) -> None:
    """Configure structlog from settings.

    Args:
        settings: Settings providing level and output format.
    """
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.LOG_JSON
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
    )


# Global settings instance
settings = Settings.from_env()
