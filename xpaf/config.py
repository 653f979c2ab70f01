"""
XPAF Configuration - Environment Settings and Logging

Settings come from environment variables. A .env file in the project root
is loaded first if present.

Environment variables:
    XPAF_SCHEMA_PATH   Default parser definitions file for the CLI
    XPAF_LOG_LEVEL     Log level (default INFO)
    XPAF_MAX_WORKERS   Worker threads for parallel document parsing (default 4)

Usage:
    from xpaf.config import configure_logging, get_settings

    settings = get_settings()
    configure_logging(settings.log_level)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import structlog
from dotenv import load_dotenv

# Look for .env in the project root (parent of xpaf package)
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

logger = structlog.get_logger(__name__)

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_MAX_WORKERS = 4


@dataclass(frozen=True)
class XpafSettings:
    """Runtime settings."""

    schema_path: Path | None = None
    log_level: str = DEFAULT_LOG_LEVEL
    max_workers: int = DEFAULT_MAX_WORKERS

    @classmethod
    def from_env(cls) -> XpafSettings:
        schema_path = os.getenv("XPAF_SCHEMA_PATH")
        log_level = os.getenv("XPAF_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()

        max_workers = DEFAULT_MAX_WORKERS
        raw_workers = os.getenv("XPAF_MAX_WORKERS")
        if raw_workers:
            try:
                max_workers = max(1, int(raw_workers))
            except ValueError:
                logger.warning("invalid_max_workers", value=raw_workers, default=DEFAULT_MAX_WORKERS)

        return cls(
            schema_path=Path(schema_path) if schema_path else None,
            log_level=log_level,
            max_workers=max_workers,
        )


def get_settings() -> XpafSettings:
    """Build settings from the current environment."""
    return XpafSettings.from_env()


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Configure structlog console output filtered at the given level."""
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
    )
