"""
Logging configuration shared by the API service, scripts and tests.

Console and rotating file output share one formatter. Values passed
through ``extra={...}`` are appended to the message as ``key=value``
pairs so structured context survives plain-text log files.
"""

import logging
import logging.handlers
import os
import sys

# Attributes every LogRecord carries; anything else came from ``extra``.
_RESERVED_RECORD_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}

_configured = False


class ExtraFieldsFormatter(logging.Formatter):
    """Formatter that renders ``extra`` fields after the message."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extras = {
            key: value for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_ATTRS and not key.startswith("_")
        }
        if not extras:
            return base
        rendered = " ".join(f"{key}={value!r}" for key, value in sorted(extras.items()))
        return f"{base} | {rendered}"


def setup_logging(log_level: str = "INFO", log_file: str | None = None, log_to_console: bool = True) -> logging.Logger:
    """
    Configure the root logger.

    Args:
        log_level: Level name such as ``INFO`` or ``DEBUG``
        log_file: Path of the rotating log file, or None to skip file output
        log_to_console: Whether to also log to stdout

    Returns:
        The configured root logger
    """
    global _configured

    root_logger = logging.getLogger()
    level = getattr(logging, str(log_level).upper(), logging.INFO)
    root_logger.setLevel(level)

    if _configured:
        return root_logger

    formatter = ExtraFieldsFormatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    # aiohttp access logs are noisy at INFO
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

    _configured = True
    root_logger.info(f"Logging initialized at {logging.getLevelName(level)} level")
    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name."""
    return logging.getLogger(name)
