"""
Logging Configuration Module

Provides consistent logging setup across the entire application.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

APP_LOGGER_NAME = "docchat"


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None
) -> logging.Logger:
    """
    Configure logging for the chat assistant.

    Module loggers of the top-level packages (chunking, vector_store,
    ingestion, generation, server) propagate to the root logger, so the
    handlers are attached there as well as to the application logger.

    Args:
        level: Logging level (default: INFO)
        log_file: Optional path to log file
        format_string: Optional custom format string

    Returns:
        Configured application logger
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    formatter = logging.Formatter(format_string, datefmt="%Y-%m-%d %H:%M:%S")

    handlers: list[logging.Handler] = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    root = logging.getLogger()
    root.setLevel(level)
    # Remove existing handlers to avoid duplicates
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)

    # Chatty third-party loggers
    for noisy in ("httpx", "httpcore", "chromadb"):
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))

    logger = logging.getLogger(APP_LOGGER_NAME)
    logger.setLevel(level)
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(f"{APP_LOGGER_NAME}.{name}")


def level_from_name(name: Optional[str], default: int = logging.INFO) -> int:
    """Translate a LOG_LEVEL string ("debug", "INFO", ...) into a level."""
    if not name:
        return default
    value = logging.getLevelName(name.strip().upper())
    return value if isinstance(value, int) else default
