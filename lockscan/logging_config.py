"""Logging configuration for lockscan.

lockscan is a library, so the package logger is quiet (WARNING) until the
embedding application calls setup_logging() with the level and format it
wants. Per-file messages carry the scanned path in the ``scan_path`` extra.
"""

import json
import logging
import sys
from datetime import datetime
from typing import Any, Dict, Optional, TextIO

LOGGER_NAME = "lockscan"


def setup_logging(level: str = "INFO", structured: bool = False, stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Set up logging for the lockscan package.

    Calling it again replaces the previous handler, so an application can
    switch level or format after import.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        structured: Whether to use structured JSON logging
        stream: Where to write, defaults to stderr

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper()))

    for handler in list(logger.handlers):
        if getattr(handler, "_lockscan_handler", False):
            logger.removeHandler(handler)

    # stdout is left to whatever renders the inventory
    handler = logging.StreamHandler(stream or sys.stderr)
    handler._lockscan_handler = True  # type: ignore[attr-defined]

    if structured:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            "[%(asctime)s] %(levelname)s - %(name)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        scan_path = getattr(record, "scan_path", None)
        if scan_path is not None:
            log_entry["path"] = scan_path

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


# Global logger instance
logger = setup_logging(level="WARNING")
