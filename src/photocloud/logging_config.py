"""
Logging Configuration
Sets up the 'photocloud' logger for the application.

Level and log file can be overridden from the environment:

    PHOTOCLOUD_LOG_LEVEL=DEBUG PHOTOCLOUD_LOG_FILE=photocloud.log photocloud
"""
import logging
import os
import sys
from typing import Optional

from photocloud.config import LOG_FILE_ENV, LOG_LEVEL_ENV

LOG_FORMAT = '%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s'

# Libraries that are chatty at DEBUG (Pillow logs every plugin it tries)
QUIET_LOGGERS = ("PIL", "pyvista")


def level_from_name(name: Optional[str], default: int = logging.INFO) -> int:
    """Resolve 'DEBUG' / 'info' / '10' to a logging level, falling back to default."""
    if not name:
        return default
    name = name.strip()
    if name.isdigit():
        return int(name)
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else default


def setup_logging(level: Optional[int] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configures the 'photocloud' logger (console + optional file).

    Args:
        level: Logging level. None reads PHOTOCLOUD_LOG_LEVEL (default INFO).
        log_file: Path of a log file. None reads PHOTOCLOUD_LOG_FILE (default: no file).

    Returns:
        The configured package logger.
    """
    if level is None:
        level = level_from_name(os.environ.get(LOG_LEVEL_ENV))
    if log_file is None:
        log_file = os.environ.get(LOG_FILE_ENV) or None

    logger = logging.getLogger("photocloud")
    logger.setLevel(level)

    # Calling this twice must not duplicate every line
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # Worker threads log too, so the thread name is part of each line
    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logger.info(f"Logging initialized ({logging.getLevelName(level)}).")
    return logger
