"""
Centralized logging configuration for the SkyCart Supplier Backend.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional
from .config import get_settings


# Libraries that log every HTTP round-trip at INFO
NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "hpack", "urllib3", "postgrest", "storage3")


class ColoredFormatter(logging.Formatter):
    """Console formatter that colours the level name."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        original = record.levelname
        color = self.COLORS.get(original, '')
        record.levelname = f"{color}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Other handlers share the record
            record.levelname = original


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None
) -> None:
    """
    Configure the root logger for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for a rotating log file
        log_format: Custom log format string
    """
    settings = get_settings()

    level_name = log_level or settings.log_level
    level = getattr(logging, level_name)
    format_string = log_format or settings.log_format
    file_path = log_file or settings.log_file

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(format_string))
    root_logger.addHandler(console_handler)

    if file_path:
        Path(file_path).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            file_path,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(format_string))
        root_logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging configured - Level: {level_name}, File: {file_path or 'Console only'}"
    )


def get_logger(name: str) -> logging.Logger:
    """Get a module logger (usually called with __name__)."""
    return logging.getLogger(name)


class LoggerMixin:
    """Gives services and components a class-scoped `self.logger`."""

    @property
    def logger(self) -> logging.Logger:
        return get_logger(f"{self.__class__.__module__}.{self.__class__.__name__}")
