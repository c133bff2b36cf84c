"""
Structured logging configuration for the LightChurch backend.

Provides JSON-formatted logging with file rotation for production environments
and human-readable console logging for development.

Loggers:
- api: HTTP requests, responses, exception handlers
- services: Business logic operations (events, interests, push targets)
- notifications: Push composition and delivery outcomes
- db: Database operations, migrations
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional


# Attributes present on every LogRecord; anything else came from ``extra={...}``
_RESERVED_RECORD_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """
    Formatter that outputs log records as single-line JSON.

    Each log record includes:
    - timestamp: ISO 8601 format
    - level: Log level (INFO, ERROR, etc.)
    - logger: Logger name
    - message: Log message
    - module / function / line: Call site
    - exception: Formatted traceback when present
    - Any fields passed through ``extra={...}``
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string."""
        log_data = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS and key not in log_data:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable formatter for console output in development.

    Format: [TIMESTAMP] LEVEL - LOGGER - MESSAGE
    Example: [2026-03-01 10:30:45] INFO - lightchurch.services - Event cancelled
    """

    def __init__(self):
        super().__init__(
            fmt="[%(asctime)s] %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )


def _get_log_level() -> int:
    """
    Get log level from the LIGHTCHURCH_LOG_LEVEL environment variable.

    Defaults to INFO for unknown or missing values.
    """
    level_str = os.environ.get("LIGHTCHURCH_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_str, logging.INFO)


def _get_log_dir() -> Path:
    """Get (and create) the log directory from LIGHTCHURCH_LOG_DIR, default ./logs."""
    log_dir = Path(os.environ.get("LIGHTCHURCH_LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _is_production() -> bool:
    """Check LIGHTCHURCH_ENV (production, development, test); default development."""
    return os.environ.get("LIGHTCHURCH_ENV", "development").lower() == "production"


LOGGER_NAMES = ("api", "services", "notifications", "db")


def configure_logging() -> Dict[str, logging.Logger]:
    """
    Configure structured logging for the backend.

    Behavior:
    - Production (LIGHTCHURCH_ENV=production):
      * JSON-formatted logs to rotating files, one per logger
      * File rotation: 10MB max size, 5 backup files
    - Development (default):
      * Human-readable console output

    Returns:
        Dictionary mapping short logger names to configured Logger instances.

    Example:
        >>> loggers = configure_logging()
        >>> loggers["services"].info("Event cancelled", extra={"event_id": 42})
    """
    log_level = _get_log_level()
    is_prod = _is_production()
    log_dir = _get_log_dir() if is_prod else None

    loggers = {}

    for logger_name in LOGGER_NAMES:
        logger = logging.getLogger(f"lightchurch.{logger_name}")
        logger.setLevel(log_level)
        logger.propagate = False
        logger.handlers.clear()

        if is_prod:
            file_handler = logging.handlers.RotatingFileHandler(
                log_dir / f"{logger_name}.log",
                maxBytes=10 * 1024 * 1024,
                backupCount=5,
                encoding="utf-8"
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(JSONFormatter())
            logger.addHandler(file_handler)
        else:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(log_level)
            console_handler.setFormatter(ConsoleFormatter())
            logger.addHandler(console_handler)

        loggers[logger_name] = logger

    return loggers


_loggers: Optional[Dict[str, logging.Logger]] = None


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger by short name.

    Args:
        name: Logger name (api, services, notifications, db)

    Raises:
        ValueError: If logger name is not recognized
    """
    global _loggers

    if _loggers is None:
        _loggers = configure_logging()

    if name not in _loggers:
        raise ValueError(
            f"Unknown logger name: {name}. "
            f"Valid names: {', '.join(_loggers.keys())}"
        )

    return _loggers[name]


def init_logging() -> Dict[str, logging.Logger]:
    """Initialize logging configuration (called on application startup)."""
    global _loggers
    _loggers = configure_logging()
    return _loggers
