# checkin/core/logging_config.py
"""Logging configuration for the check-in service"""

import os
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from checkin.core.config import Settings, settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_FILE_NAME = 'checkin.log'
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Third-party loggers that flood INFO
QUIET_LOGGERS = ("uvicorn.access", "redis", "asyncio")


def _has_console_handler(logger: logging.Logger) -> bool:
    # FileHandler subclasses StreamHandler
    return any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in logger.handlers
    )


def _has_file_handler(logger: logging.Logger, log_file: Path) -> bool:
    target = os.path.abspath(log_file)
    return any(
        isinstance(h, RotatingFileHandler) and h.baseFilename == target
        for h in logger.handlers
    )


def setup_logging(current: Optional[Settings] = None) -> logging.Logger:
    """
    Configure the root logger from LOG_LEVEL and LOG_DIR.

    Safe to call repeatedly: the console handler and the rotating file
    handler for LOG_DIR/checkin.log are each attached once.
    """
    current = current or settings
    log_file = Path(current.LOG_DIR) / LOG_FILE_NAME
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(current.LOG_LEVEL.upper())
    formatter = logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    if not _has_console_handler(root_logger):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if not _has_file_handler(root_logger, log_file):
        file_handler = RotatingFileHandler(
            filename=str(log_file),
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger
