from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Logging initialization with labeled prefixes.

Every line written by the importer carries one of the labels
INFO|WARN|ERROR|SUMMARY so that operators (and the CLI tests) can grep the
output. Module loggers (``logging.getLogger(__name__)``) live under the
``schedule_import`` namespace and therefore share the handler installed here.
"""

__all__ = [
    "setup_logging",
    "get_logger",
    "log_summary",
    "reset_logging",
    "LOGGER_NAME",
]

LOGGER_NAME = "schedule_import"

# Custom SUMMARY level (between INFO=20 and WARNING=30)
SUMMARY_LEVEL = 25

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """Formatter emitting ``LABEL message``."""

    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
        SUMMARY_LEVEL: "SUMMARY",
    }

    def format(self, record: logging.LogRecord) -> str:
        level_label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        return f"{level_label} {record.getMessage()}"


def setup_logging(debug: bool = False, stream: TextIO | None = None) -> logging.Logger:
    """Configure the application logger (idempotent).

    Output goes to ``stream`` (stdout by default). The CLI passes stderr when
    stdout carries the JSON result. Calling again adjusts the level and, when
    ``stream`` is given, redirects the existing handler.

    Returns:
        Configured ``schedule_import`` logger
    """
    global _logger

    level = logging.DEBUG if debug else logging.INFO
    if _logger is not None:
        _logger.setLevel(level)
        for h in _logger.handlers:
            h.setLevel(level)
            if stream is not None and isinstance(h, logging.StreamHandler):
                h.setStream(stream)
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # ハンドラ重複防止
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)

    # Prevent propagation to root logger to avoid duplicate output
    logger.propagate = False

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    """Return the configured application logger, configuring it on first use."""
    if _logger is None:
        return setup_logging()
    return _logger


def log_summary(message: str) -> None:
    """Log ``message`` at SUMMARY level (the ``SUMMARY`` label is added by the formatter)."""
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Reset the global logger state. Mainly for testing purposes."""
    global _logger
    if _logger is not None:
        for handler in _logger.handlers[:]:
            _logger.removeHandler(handler)
    _logger = None
