"""
Logging utilities for the GData wire library.

Provides category-based logging filtering and console handler setup.
"""

import logging
import sys
from typing import Optional


class CategoryFilter(logging.Filter):
    """Filter log records by category prefix"""

    def __init__(self, categories: list[str]):
        super().__init__()
        self.categories = categories

    def filter(self, record: logging.LogRecord) -> bool:
        # If no categories specified, allow all
        if not self.categories:
            return True

        # Check if logger name starts with any allowed category
        return any(record.name.startswith(cat) for cat in self.categories)


def setup_logging(log_level: Optional[str] = None, log_categories: Optional[list[str]] = None,
                  stream=None):
    """
    Configure logging for applications using the library.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL); defaults to LOG_LEVEL
        log_categories: List of category prefixes to log (empty = all); defaults to LOG_CATEGORIES
        stream: Output stream for the console handler (default: stdout)
    """
    if log_level is None or log_categories is None:
        from gdata_wire.config import get_settings
        settings = get_settings()
        if log_level is None:
            log_level = settings.log_level
        if log_categories is None:
            log_categories = settings.log_categories

    level = getattr(logging, log_level.upper())

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    root_logger.handlers.clear()

    # Format: timestamp [level] name - message
    formatter = logging.Formatter(
        fmt='%(asctime)s.%(msecs)03d [%(levelname)-8s] %(name)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    # Add category filter if specified
    if log_categories:
        console_handler.addFilter(CategoryFilter(log_categories))

    root_logger.addHandler(console_handler)

    # requests/urllib3 are chatty at DEBUG
    logging.getLogger('urllib3').setLevel(max(level, logging.INFO))


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module/category.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
