# src/pg_enhanced/core/logging/filters.py
"""
Logging filters.

RequestIdFilter stamps every record with a `request_id`, so the query logs and DBError
reports of one unit of work (an HTTP request, a job, a test) can be correlated. The id is
kept in a ContextVar and therefore follows asyncio tasks across awaits:

    with request_id_scope("job-42"):
        await client.sql(...)

RedactFilter masks record attributes with well-known sensitive names. Query parameters
are NOT inspected.
"""

from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Iterator
import logging

NO_REQUEST_ID = "-"
REDACTED = "***REDACTED***"

_current_request_id: ContextVar[str | None] = ContextVar("pg_enhanced_request_id", default=None)


def set_request_id(request_id: str | None) -> Token:
    """Bind `request_id` to the current context; pass the returned token to `reset_request_id`."""
    return _current_request_id.set(request_id)


def reset_request_id(token: Token) -> None:
    _current_request_id.reset(token)


def get_request_id() -> str | None:
    return _current_request_id.get()


@contextmanager
def request_id_scope(request_id: str | None) -> Iterator[None]:
    token = set_request_id(request_id)
    try:
        yield
    finally:
        reset_request_id(token)


class RequestIdFilter(logging.Filter):
    """
    Precedence: an explicit `extra={"request_id": ...}`, then the context value, then "-".
    Never drops a record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        explicit = getattr(record, "request_id", None)
        record.request_id = explicit or get_request_id() or NO_REQUEST_ID
        return True


class RedactFilter(logging.Filter):
    SENSITIVE = frozenset({
        "password",
        "postgres_password",
        "secret",
        "token",
        "access_token",
        "refresh_token",
        "authorization",
    })

    def filter(self, record: logging.LogRecord) -> bool:
        sensitive = [name for name in vars(record) if name.lower() in self.SENSITIVE]
        for name in sensitive:
            setattr(record, name, REDACTED)
        return True
