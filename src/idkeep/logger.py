"""
Logging setup for idkeep.
One JSON-line handler on the package logger; modules log through children of it.
"""

import json
import logging
import os
import sys
import time
from typing import Optional, Union

from .config import LOG_DATE_FORMAT, LOGGER_NAME, log_level


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record, with UTC timestamps."""

    converter = time.gmtime

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def configure_logging(
    level: Union[int, str, None] = None,
    to_file: Optional[str] = None,
) -> logging.Logger:
    """
    Attach structured handlers to the package logger.
    Calling it again only updates the level.

    Args:
        level: Logging level (name or number); defaults to IDKEEP_LOG_LEVEL
        to_file: Optional path of an extra log file

    Returns:
        The package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level if level is not None else log_level())

    if not logger.handlers:
        formatter = JsonLineFormatter(datefmt=LOG_DATE_FORMAT)
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        if to_file:
            directory = os.path.dirname(to_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            file_handler = logging.FileHandler(to_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, nested under the package logger."""
    if name == LOGGER_NAME or name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
