# src/pg_enhanced/core/logging/builder.py
"""
Build and apply the dictConfig for pg_enhanced from Settings.

pg_enhanced is a library, so nothing here runs on import. Applications (or the test
suite) call `setup_logging(settings)` once at startup; library modules only ever do
`logging.getLogger(__name__)`.

Settings read: LOG_LEVEL, LOG_FORMAT, LOG_TO_STDOUT, LOG_DIR, LOG_MAX_BYTES,
LOG_BACKUP_COUNT, ENABLE_SQL_LOGGING, ENV.
"""

from __future__ import annotations

from pathlib import Path
import logging
import logging.config

from .formatters import JsonFormatter, ColorFormatter
from .filters import RequestIdFilter, RedactFilter
from .handlers import (
    get_console_handler,
    get_file_handler,
    get_error_file_handler,
    get_error_console_handler,
)
from ...utils.logging import get_project_name
from ...config.settings import Settings

TEXT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s"


def _writes_files(settings: Settings) -> bool:
    return (not settings.LOG_TO_STDOUT) and bool(settings.LOG_DIR)


def _formatters(settings: Settings) -> dict:
    text_formatter = ColorFormatter if settings.LOG_FORMAT == "text" else logging.Formatter
    return {
        "standard": {"()": text_formatter, "format": TEXT_FORMAT},
        "json": {"()": JsonFormatter, "env": settings.ENV, "service": get_project_name()},
    }


def _handlers(settings: Settings) -> dict[str, dict]:
    handlers = {"console": get_console_handler(settings)}
    if _writes_files(settings):
        handlers["file"] = get_file_handler(settings)
        handlers["error_file"] = get_error_file_handler(settings)
    else:
        handlers["error_console"] = get_error_console_handler(settings)
    return handlers


def _loggers(settings: Settings, handler_names: list[str]) -> dict:
    return {
        "": {"handlers": handler_names, "level": settings.LOG_LEVEL, "propagate": True},
        "pg_enhanced": {"level": settings.LOG_LEVEL, "propagate": True},
        "asyncpg": {"level": "WARNING", "propagate": True},
        # Engine echo includes bound parameter values.
        "sqlalchemy.engine": {
            "level": "DEBUG" if settings.ENABLE_SQL_LOGGING else "WARNING",
            "handlers": ["console"],
            "propagate": False,
        },
    }


def make_dict_config(settings: Settings) -> dict:
    """
    Return the dictConfig mapping for `settings`.

    Handlers are the console plus either the two rotating files (LOG_TO_STDOUT off and a
    LOG_DIR set) or an error-only console stream.
    """
    handlers = _handlers(settings)
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": _formatters(settings),
        "filters": {
            "request_id": {"()": RequestIdFilter},
            "redact": {"()": RedactFilter},
        },
        "handlers": handlers,
        "loggers": _loggers(settings, list(handlers)),
    }


def setup_logging(settings: Settings) -> None:
    """
    Apply `make_dict_config(settings)`, creating LOG_DIR first when files are written.

    A RequestIdFilter is also attached to the root logger (once), so records handled by
    handlers added outside of dictConfig still carry `request_id`.
    """
    if _writes_files(settings):
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(make_dict_config(settings))

    root = logging.getLogger()
    if not any(isinstance(f, RequestIdFilter) for f in root.filters):
        root.addFilter(RequestIdFilter())
