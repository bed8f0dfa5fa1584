"""
Logging - Application logging configuration.

Provides:
- Python logging configuration with console and optional file output
"""

from pathlib import Path
from typing import Optional
import logging

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def configure_logging(level: int = logging.INFO,
                      log_file: Optional[str | Path] = None) -> None:
    """
    Configure Python logging for the application.

    Sets up a root logger with console output, plus a file handler
    appending to `log_file` when given.

    Args:
        level: Logging level (default: INFO)
        log_file: Optional path of a log file to append to
    """
    root_logger = logging.getLogger()

    # Only configure if not already configured
    if root_logger.handlers:
        return

    root_logger.setLevel(level)

    # Console handler with simple format
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S'))
    root_logger.addHandler(console_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(Path(log_file), encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        root_logger.addHandler(file_handler)
