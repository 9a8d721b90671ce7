"""Application logging with file rotation and console output."""

import logging
import os
from logging.handlers import RotatingFileHandler

from backend.app.core.settings import get_settings

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s"

_configured = False


def setup_logging(level: str | None = None, log_file: str | None = None) -> None:
    """Configure the root logger once per process."""
    global _configured
    if _configured:
        return

    settings = get_settings()
    level = level or settings.log_level
    log_file = log_file if log_file is not None else settings.log_file

    formatter = logging.Formatter(LOG_FORMAT)
    logger = logging.getLogger()
    logger.setLevel(level)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_directory = os.path.dirname(log_file)
        if log_directory and not os.path.exists(log_directory):
            os.makedirs(log_directory)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=1 * 1024 * 1024,  # 1 MB
            backupCount=3,
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    _configured = True
