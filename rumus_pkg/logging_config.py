"""Logging setup for Rumus: one "rumus" logger tree, written to stderr."""

import logging
import sys
from datetime import datetime
from typing import Optional

ROOT_LOGGER = "rumus"


class StructuredFormatter(logging.Formatter):
    """Formats records as ``<iso timestamp> [LEVEL] rumus.module: message``."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).isoformat()
        line = f"{timestamp} [{record.levelname}] {record.name}: {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Send Rumus logs at ``level`` and above to stderr, and to ``log_file`` if given.

    Calling it again replaces the handlers from the previous call.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.handlers.clear()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def safe_log(module_name: str, level: str, message: str) -> None:
    """Log without letting a broken handler interrupt the caller.

    Plot sampling logs every skipped point, and one failing handler must not
    abort the rest of the samples.
    """
    try:
        getattr(get_logger(module_name), level.lower(), get_logger(module_name).info)(message)
    except Exception:
        pass
