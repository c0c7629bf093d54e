"""Logging configuration for the application."""

from __future__ import annotations

import logging
import sys

from quotebook.core.settings import Settings


def configure_logging(settings: Settings) -> None:
    """Configure root logging for CLI and web entry points.

    Args:
        settings: Application settings
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )

    # SQL echo goes through the sqlalchemy.engine logger.
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.sql_debug else logging.WARNING
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("quotebook").setLevel(level)

    logging.getLogger(__name__).debug(
        "Logging configured: level=%s", logging.getLevelName(level)
    )
