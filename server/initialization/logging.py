"""
Server Initialization - Logging Module.

Module: logging.py
Configures loguru logger for the notification server.
Sets up log rotation and retention policies.
"""

import sys

from loguru import logger

from paylink.config.settings import Settings


def setup_logging(settings: Settings) -> None:
    """Configure console and rotating file sinks at the configured level."""
    level = "DEBUG" if settings.debug else settings.log_level.upper()

    logger.remove()
    logger.add(sys.stderr, level=level)
    logger.add(
        "logs/paylink.log",
        rotation="1 day",
        retention="7 days",
        level=level,
        encoding="utf-8",
    )

    logger.info(f"Starting PayLink notification server ({settings.environment}, {settings.network})...")
