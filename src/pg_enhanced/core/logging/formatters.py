# src/pg_enhanced/core/logging/formatters.py
"""
Log formatters picked by `settings.LOG_FORMAT` (see builder.py).

JsonFormatter
    One JSON object per line: timestamp, level, logger, message, request_id, service, env,
    version, plus every `extra={...}` key found on the record. pg_enhanced logs events
    such as "detailed-sql-log" or "client.query_failed" with their data in extras
    (`query_text`, `query_values`, `status_code`, ...), so the extras are the payload.

ColorFormatter
    `TIME | LEVEL | LOGGER | REQUEST_ID | MESSAGE` with an ANSI-colored level, for terminals.

Query text and values are printed as they are. RedactFilter only masks record attributes
with well-known sensitive names.
"""

import json
import logging
from typing import Any
from logging import LogRecord
from ...utils.logging import get_project_version

PROJECT_VERSION = get_project_version()

# Attributes every LogRecord has; anything else on the record came from `extra={...}`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime"}


def _json_safe(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


def record_extras(record: LogRecord) -> dict[str, Any]:
    """Return the `extra={...}` attributes of a record, made JSON-serializable."""
    return {
        key: _json_safe(value)
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    def __init__(self, *, env: str | None = None, service: str = "pg-enhanced", datefmt: str | None = None):
        super().__init__(datefmt=datefmt)
        self.env = env
        self.service = service

    def format(self, record: LogRecord) -> str:
        payload: dict[str, Any] = record_extras(record)
        # Core fields win over extras with the same name.
        payload.update(
            timestamp=self.formatTime(record, self.datefmt),
            level=record.levelname,
            logger=record.name,
            message=record.getMessage(),
            pathname=record.pathname,
            lineno=record.lineno,
            request_id=getattr(record, "request_id", "-"),
            service=self.service,
            env=self.env,
            version=PROJECT_VERSION,
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack_info"] = self.formatStack(record.stack_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ColorFormatter(logging.Formatter):
    LEVEL_COLORS = {
        "DEBUG": "\033[36m",        # cyan
        "INFO": "\033[32m",         # green
        "WARNING": "\033[33m",      # yellow
        "ERROR": "\033[31m",        # red
        "CRITICAL": "\033[1;41m",   # bold on red
    }
    RESET = "\033[0m"

    def format(self, record: LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname, "")
        columns = [
            self.formatTime(record, self.datefmt),
            f"{color}{record.levelname:<8}{self.RESET}",
            f"{record.name:<28}",
            f"{getattr(record, 'request_id', '-'):<10}",
            record.getMessage(),
        ]
        line = " | ".join(columns)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line
