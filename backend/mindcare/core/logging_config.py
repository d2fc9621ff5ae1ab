"""
Centralized logging configuration for the MindCare backend.

This module provides:
- Console output with colored level names
- File output with JSON structured logging (rotating)
- Helpers to filter credentials and truncate large payloads before logging
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


class ColoredFormatter(logging.Formatter):
    """Formatter adding ANSI colors to the level name for console output."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m',
    }

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy so the file handler still sees the plain level name
        record = logging.makeLogRecord(record.__dict__)
        level_color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        record.levelname = f"{level_color}{record.levelname:8s}{self.COLORS['RESET']}"
        return super().format(record)


class JSONFormatter(logging.Formatter):
    """Formatter that outputs one JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        # Structured fields passed as extra={"extra_fields": {...}}
        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


APP_LOGGER = "mindcare"

# Libraries that log every request or connection at INFO
LIBRARY_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "watchfiles", "multipart")

CONSOLE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def _level(name: str, default: int = logging.INFO) -> int:
    return getattr(logging, str(name).upper(), default)


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(config: Any, level: int) -> logging.Handler:
    Path(config.log_file_path).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        filename=config.log_file_path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding='utf-8'
    )
    handler.setLevel(level)
    if config.log_json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(config: Any) -> None:
    """
    Configure logging for the MindCare backend.

    The `mindcare` package logs at `log_level`. The HTTP and server libraries
    in LIBRARY_LOGGERS log at `log_library_level`, never below `log_level`.

    Args:
        config: Settings object with logging configuration
    """
    log_level = _level(config.log_level)
    library_level = max(_level(config.log_library_level, logging.WARNING), log_level)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)

    if config.log_console_enabled:
        root_logger.addHandler(_console_handler(log_level))
    if config.log_file_enabled:
        root_logger.addHandler(_file_handler(config, log_level))

    logging.getLogger(APP_LOGGER).setLevel(log_level)
    for name in LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    logging.getLogger(APP_LOGGER).info(
        f"Logging initialized: level={logging.getLevelName(log_level)}, "
        f"libraries={logging.getLevelName(library_level)}, "
        f"console={config.log_console_enabled}, "
        f"file={config.log_file_enabled}"
    )


def filter_sensitive_data(data: Any, sensitive_keys: Optional[list] = None) -> Any:
    """
    Filter sensitive information from log data.

    Args:
        data: Data to filter (dict, list, or primitive)
        sensitive_keys: Keys to mask (default: password, token, secret, authorization, api keys)

    Returns:
        Filtered data with sensitive values replaced by "***FILTERED***"
    """
    if sensitive_keys is None:
        sensitive_keys = ['password', 'token', 'secret', 'authorization', 'api_key', 'api-key']

    if isinstance(data, dict):
        return {
            key: "***FILTERED***" if any(sensitive in key.lower() for sensitive in sensitive_keys)
            else filter_sensitive_data(value, sensitive_keys)
            for key, value in data.items()
        }
    elif isinstance(data, list):
        return [filter_sensitive_data(item, sensitive_keys) for item in data]
    else:
        return data


def truncate_large_data(data: str, max_length: int = 5000) -> str:
    """Truncate a string to max_length characters, noting the original length."""
    if len(data) <= max_length:
        return data
    return data[:max_length] + f"... (truncated, total length: {len(data)})"
