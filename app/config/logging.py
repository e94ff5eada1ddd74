"""
Logging configuration.

Configures the loguru logger: stderr sink plus an optional rotating file.
"""

import sys

from loguru import logger

from app.config.settings import settings


def setup_logging(component: str = "storefront") -> None:
    """
    Configure logger sinks.

    Args:
        component: Name written to the startup line (worker, scheduler, ...)
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        backtrace=settings.debug,
        diagnose=settings.debug,
    )

    if settings.log_file:
        logger.add(
            settings.log_file,
            rotation="1 day",
            retention="7 days",
            level=settings.log_level,
            encoding="utf-8",
            enqueue=True,
        )

    logger.info(f"Starting {component}...")
