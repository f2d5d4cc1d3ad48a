"""
Logging configuration for the CSV ingestion service.
Logs are operator-facing only; CSV content is never written to them.
"""
import logging
import os
import sys
import time
from typing import Optional


class UTCFormatter(logging.Formatter):
    """Formatter that stamps records in UTC."""

    converter = time.gmtime


def setup_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Configure and return a logger instance.

    Args:
        name: Logger name (usually __name__)
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to env LOG_LEVEL or INFO.

    Returns:
        Configured logger instance
    """
    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if log_level not in logging.getLevelNamesMapping():
        log_level = "INFO"

    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    # Avoid duplicate handlers
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(log_level)
        handler.setFormatter(
            UTCFormatter(
                fmt="%(asctime)sZ | %(name)s | %(levelname)s | %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        )
        logger.addHandler(handler)

    return logger
