"""Logging configuration module."""

import logging
from typing import Optional
from .settings import settings


def setup_logging(level: Optional[str] = None, format_str: Optional[str] = None):
    """
    Configure root logging.

    Args:
        level: log level name, read from settings by default
        format_str: log format, the standard format by default
    """
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    log_format = format_str or "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    logging.basicConfig(
        level=log_level, format=log_format, handlers=[logging.StreamHandler()]
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger by name.

    Args:
        name: logger name, usually __name__

    Returns:
        the logger instance
    """
    return logging.getLogger(name)
