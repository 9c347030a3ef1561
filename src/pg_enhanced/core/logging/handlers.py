# src/pg_enhanced/core/logging/handlers.py
"""
Handler factories for logging.dictConfig.

Each function returns a handler *configuration dict* (not a handler instance). The formatter
and filter names used here ("json", "standard", "request_id", "redact") are declared by
builder.py.

    console       stderr, LOG_LEVEL, formatter picked by LOG_FORMAT
    file          <LOG_DIR>/pg-enhanced.log, rotating, LOG_LEVEL
    error_file    <LOG_DIR>/errors.log, rotating, ERROR and up, always JSON
    error_console stderr, ERROR and up, always JSON (used when no files are written)
"""

from pathlib import Path
from ...config.settings import Settings

LOG_FILE_NAME = "pg-enhanced.log"
ERROR_LOG_FILE_NAME = "errors.log"

_FILTERS = ["request_id", "redact"]


def _formatter_name(settings: Settings) -> str:
    return "json" if settings.LOG_FORMAT == "json" else "standard"


def _stream(formatter: str, level: str) -> dict:
    return {
        "class": "logging.StreamHandler",
        "formatter": formatter,
        "level": level,
        "filters": list(_FILTERS),
    }


def _rotating_file(settings: Settings, file_name: str, formatter: str, level: str) -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "filename": str(Path(settings.LOG_DIR) / file_name),
        "maxBytes": settings.LOG_MAX_BYTES,
        "backupCount": settings.LOG_BACKUP_COUNT,
        "encoding": "utf-8",
        "formatter": formatter,
        "level": level,
        "filters": list(_FILTERS),
    }


def get_console_handler(settings: Settings) -> dict:
    return _stream(_formatter_name(settings), settings.LOG_LEVEL)


def get_file_handler(settings: Settings) -> dict:
    return _rotating_file(settings, LOG_FILE_NAME, _formatter_name(settings), settings.LOG_LEVEL)


def get_error_file_handler(settings: Settings) -> dict:
    return _rotating_file(settings, ERROR_LOG_FILE_NAME, "json", "ERROR")


def get_error_console_handler(settings: Settings) -> dict:
    return _stream("json", "ERROR")
