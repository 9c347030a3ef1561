"""
Error classes raised by pg_enhanced.

- PgEnhancedError: root of everything this package raises.
- QueryTemplateError: malformed template input, raised synchronously by the assembler.
- DBError: a database (or database-adjacent) failure, reworded by the classifier and
  carrying an HTTP-like status code (400 by default, 429 for retryable failures).
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from .classifier import ClassifiedError, DatabaseErrorInput, classify, is_postgres_error

logger = logging.getLogger(__name__)

DEFAULT_STATUS_CODE = 400
RETRYABLE_STATUS_CODE = 429

# Substrings that mark non-server errors which are still worth classifying.
TIMEOUT_MARKER = "Query read timeout"
UNDEFINED_VALUE_MARKER = "UNDEFINED_VALUE"


class PgEnhancedError(Exception):
    """
    Base exception for pg_enhanced.

    - message: human-friendly message (safe to log or show to an operator)
    - status_code: HTTP-like status associated with the error
    """

    type = "PgEnhancedError"
    status_code = DEFAULT_STATUS_CODE

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict:
        """
        Return a JSON-serializable dict suitable for HTTP responses:
            {"detail": "...", "type": "DBError"}
        """
        return {"detail": self.message, "type": self.type}

    def http_status(self) -> int:
        return self.status_code


class QueryTemplateError(PgEnhancedError, ValueError):
    """Raised when template fragments/values can't be assembled into valid SQL."""

    type = "QueryTemplateError"


class DBError(PgEnhancedError):
    """
    Error for failures that originate from PostgreSQL.

    Construction rules:
      - another DBError is copied as-is;
      - errors that are not PostgreSQL errors and don't look like a query timeout or an
        undefined-value error are wrapped with their message untouched;
      - everything else goes through `classify()`; timeouts and too-many-connections get a
        429 status, the rest 400.

    `query` and `parameters` must be passed by the code that ran the query. The driver
    doesn't know them.
    """

    type = "DBError"

    def __init__(
        self,
        original_error: BaseException | str,
        *,
        query: str | None = None,
        parameters: Sequence[Any] | None = None,
    ):
        # Copy case
        if isinstance(original_error, DBError):
            super().__init__(original_error.message)
            self.status_code = original_error.status_code
            self.original_error = original_error.original_error
            self.classification = original_error.classification
            self.query = original_error.query
            self.parameters = original_error.parameters
            self.__traceback__ = original_error.__traceback__
            return

        self.query = query
        self.parameters = parameters
        self.classification: ClassifiedError | None = None

        if isinstance(original_error, str):
            original_error = Exception(original_error)
        self.original_error = original_error

        if not self._should_classify(original_error):
            super().__init__(str(original_error))
            return

        self.classification = classify(
            DatabaseErrorInput.from_exception(original_error, query=query, parameters=parameters)
        )
        super().__init__(self.classification.message)

        if self.classification.is_retryable:
            self.status_code = RETRYABLE_STATUS_CODE
        logger.debug(
            "db_error.classified",
            extra={"status_code": self.status_code, "error_type": type(original_error).__name__},
        )

    @staticmethod
    def _should_classify(error: BaseException) -> bool:
        if is_postgres_error(error):
            return True
        text = str(error)
        return TIMEOUT_MARKER in text or UNDEFINED_VALUE_MARKER in text

    @property
    def is_timeout_error(self) -> bool:
        return bool(self.classification and self.classification.is_timeout_error)

    @property
    def is_too_many_connections_error(self) -> bool:
        return bool(self.classification and self.classification.is_too_many_connections_error)


__all__ = [
    "PgEnhancedError",
    "QueryTemplateError",
    "DBError",
    "DEFAULT_STATUS_CODE",
    "RETRYABLE_STATUS_CODE",
]
