"""Logging configuration.

Log records go to stderr so they never mix with command output.

Environment variables:
- SHOPLEDGER_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: WARNING)
- SHOPLEDGER_LOG_FORMAT: "console" or "json" (default: console)
"""

import json
import logging
import logging.config
import os
import sys
from datetime import datetime, UTC
from typing import Optional

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_STANDARD_ATTRS = {
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName", "taskName",
    "processName", "process", "exc_info", "exc_text", "stack_info",
    "message",
}


class StderrHandler(logging.StreamHandler):
    """Stream handler bound to whatever ``sys.stderr`` is at emit time."""

    def __init__(self, level=logging.NOTSET):
        logging.Handler.__init__(self, level)

    @property
    def stream(self):
        return sys.stderr


class JsonFormatter(logging.Formatter):
    """One JSON object per line with timestamp, level, logger, message and extras."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extras = {}
        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS:
                continue
            try:
                json.dumps(value)
                extras[key] = value
            except (TypeError, ValueError):
                extras[key] = str(value)
        if extras:
            log_entry["extra"] = extras

        return json.dumps(log_entry, default=str)


def get_logging_config(level: Optional[str] = None, log_format: Optional[str] = None) -> dict:
    """Build the dictConfig for the ``shopledger`` logger tree.

    Explicit arguments win over the environment variables.
    """
    level = (level or os.environ.get("SHOPLEDGER_LOG_LEVEL") or "WARNING").upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"Unknown log level '{level}' (expected one of {', '.join(LOG_LEVELS)})")
    log_format = (log_format or os.environ.get("SHOPLEDGER_LOG_FORMAT") or "console").lower()

    if log_format == "json":
        formatter = {"()": JsonFormatter}
    else:
        formatter = {"format": "[{asctime}] {levelname} {name} {message}", "style": "{"}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": formatter},
        "handlers": {
            "stderr": {
                "()": StderrHandler,
                "formatter": "default",
            },
        },
        "loggers": {
            "shopledger": {
                "handlers": ["stderr"],
                "level": level,
            },
        },
    }


def configure_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Install the stderr handler on the ``shopledger`` logger."""
    logging.config.dictConfig(get_logging_config(level, log_format))
