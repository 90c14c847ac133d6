"""
Logging setup for the skill context engine.

Console output plus an optional rotating log file.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from config import LoggingConfig, get_config

DEFAULT_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s'


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """
    Configure logging for the ``skill_engine`` logger tree.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Rotating log file path, or None for console only
        max_bytes: Maximum size of a single log file
        backup_count: Number of rotated files to keep
        log_format: Format string for both handlers

    Returns:
        The configured ``skill_engine`` logger
    """
    level = getattr(logging, log_level.upper())

    engine_logger = logging.getLogger("skill_engine")
    engine_logger.setLevel(level)
    engine_logger.handlers.clear()

    formatter = logging.Formatter(fmt=log_format, datefmt='%Y-%m-%d %H:%M:%S')

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    engine_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        engine_logger.addHandler(file_handler)

    engine_logger.info(f"Logging initialised: level={log_level}, file={log_file}")
    return engine_logger


def setup_logging_from_config(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """Configure logging from the `logging` section of the engine configuration."""
    if config is None:
        config = get_config().logging

    return setup_logging(
        log_level=config.level,
        log_file=config.file,
        max_bytes=config.max_bytes,
        backup_count=config.backup_count,
        log_format=config.format,
    )


__all__ = ["setup_logging", "setup_logging_from_config", "DEFAULT_FORMAT"]
