"""
Logging configuration.

- Coloured console output in development (ENV=dev)
- JSON lines everywhere else, ready for log shipping
- A single root StreamHandler, so uvicorn/gunicorn reloads never duplicate lines

Modules obtain loggers with ``get_logger(__name__)``.
"""

import json
import logging
import sys
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class ColoredFormatter(logging.Formatter):
    """Formatter with coloured log levels and grey logger names for development."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",      # Cyan
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "CRITICAL": "\033[1;31m", # Bold Red
    }
    GREY = "\033[90m"
    RESET = "\033[0m"

    def formatTime(self, record, datefmt=None):
        """Include milliseconds in the timestamp."""
        ct = self.converter(record.created)
        s = time.strftime(datefmt or "%Y-%m-%d %H:%M:%S", ct)
        return f"{s},{int(record.msecs):03d}"

    def format(self, record: logging.LogRecord) -> str:
        original_levelname = record.levelname
        original_name = record.name

        log_color = self.COLORS.get(record.levelname, "")
        if log_color:
            record.levelname = f"{log_color}{record.levelname}{self.RESET}"
        record.name = f"{self.GREY}{record.name}{self.RESET}"

        try:
            return super().format(record)
        finally:
            # Other handlers must see the plain values
            record.levelname = original_levelname
            record.name = original_name


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging outside development."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


_HANDLER_MARKER = "_backend_starter_handler"


def configure_logging(level: str = "INFO", env: str = "prod", stream: Optional[Any] = None) -> logging.Handler:
    """
    Install the application handler on the root logger.

    Calling it again replaces the previously installed handler instead of
    adding a second one.

    Args:
        level: Root log level name (DEBUG, INFO, WARNING, ERROR)
        env: Environment name; "dev" selects the coloured formatter
        stream: Output stream, stdout by default

    Returns:
        logging.Handler: The installed handler
    """
    if env.lower() == "dev":
        formatter: logging.Formatter = ColoredFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = JSONFormatter()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)
    setattr(handler, _HANDLER_MARKER, True)

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if getattr(existing, _HANDLER_MARKER, False):
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # SQLAlchemy adds its own handlers when echo is on; let records reach root only
    for sa_logger_name in ("sqlalchemy.engine", "sqlalchemy.pool"):
        sa_logger = logging.getLogger(sa_logger_name)
        sa_logger.handlers.clear()
        sa_logger.propagate = True

    return handler


def get_logger(name: str) -> logging.Logger:
    """
    Get or create a logger with the specified name.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Application started")
    """
    return logging.getLogger(name)
