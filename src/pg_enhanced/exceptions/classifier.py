"""
Database error classifier.

Turns a raw PostgreSQL / driver error into a short, human-oriented message plus two flags
(`is_timeout_error`, `is_too_many_connections_error`) that callers use to pick a status.

Error *messages* are matched rather than SQLSTATE codes, because one code can cover
different cases. For example, a "bad delete" and a "bad insert" both come from 23503
(foreign_key_violation) but need different wording.

The rules live in `CLASSIFIER_RULES`, an ordered table evaluated top to bottom; the first
match wins. Rules are listed roughly from most to least common in practice.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Sequence

logger = logging.getLogger(__name__)


# =================================================================================================================
# Input / output records
# =================================================================================================================

@dataclass(frozen=True)
class DatabaseErrorInput:
    """
    Everything the classifier looks at.

    `query` and `parameters` are not set by the driver: the code that executed the query must
    attach them (see `from_exception`). Without them several rules degrade to the fallback.
    """

    message: str
    detail: str | None = None
    table: str | None = None
    query: str | None = None
    parameters: Sequence[Any] | None = None
    args: Any = None

    @classmethod
    def from_exception(
        cls,
        exc: BaseException | str,
        *,
        query: str | None = None,
        parameters: Sequence[Any] | None = None,
    ) -> "DatabaseErrorInput":
        """
        Read diagnostics off a driver exception.

        Understands asyncpg errors (`message`, `detail`, `table_name`), psycopg errors
        (`diag.message_primary`, ...) and SQLAlchemy `DBAPIError` wrappers around either.
        Explicit `query`/`parameters` win over anything found on the exception.
        """
        if isinstance(exc, str):
            return cls(message=exc, query=query, parameters=parameters)

        err = unwrap_driver_error(exc)
        diag = getattr(err, "diag", None)

        message = getattr(err, "message", None)
        if not isinstance(message, str) or not message:
            message = getattr(diag, "message_primary", None) or str(err)

        detail = getattr(err, "detail", None) or getattr(diag, "message_detail", None)
        table = getattr(err, "table_name", None) or getattr(diag, "table_name", None)

        return cls(
            message=message,
            detail=detail,
            table=table,
            query=query if query is not None else getattr(err, "query", None),
            parameters=parameters if parameters is not None else getattr(err, "parameters", None),
            args=getattr(err, "error_args", None),
        )


@dataclass(frozen=True)
class ClassifiedError:
    message: str
    is_timeout_error: bool = False
    is_too_many_connections_error: bool = False

    @property
    def is_retryable(self) -> bool:
        return self.is_timeout_error or self.is_too_many_connections_error


def unwrap_driver_error(exc: BaseException) -> BaseException:
    """
    Return the innermost driver error.

    SQLAlchemy wraps DBAPI errors (`exc.orig`), and its asyncpg adapter chains the real
    asyncpg exception as `__cause__`.
    """
    err = getattr(exc, "orig", None) or exc
    cause = getattr(err, "__cause__", None)
    if cause is not None and getattr(cause, "sqlstate", None):
        return cause
    return err


def is_postgres_error(exc: BaseException) -> bool:
    """True for errors that carry a SQLSTATE (asyncpg / psycopg errors, or wrappers of them)."""
    err = unwrap_driver_error(exc)
    return bool(getattr(err, "sqlstate", None) or getattr(err, "pgcode", None))


# =================================================================================================================
# Helpers
# =================================================================================================================

def get_query_method(query: str | None) -> str | None:
    """
    Return the first word of a query (SELECT, INSERT, ...), not validated as a SQL verb.

    Queries written in code often start with a newline or stray characters, so tokens of a
    single character are skipped.
    """
    if not query:
        return None
    for token in query.split():
        if len(token) > 1:
            return token
    return None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _to_json(value: Any) -> str:
    # Keys json can't encode (bytes, tuples) and circular values fall back to str().
    try:
        return json.dumps(value, default=str)
    except (TypeError, ValueError):
        return str(value)


def _item_id(parameters: Sequence[Any] | None) -> str:
    if not parameters:
        return ""
    item_id = parameters[0]
    if item_id is None:
        return "null"
    if isinstance(item_id, (dict, list, tuple)):
        return _to_json(item_id)
    return str(item_id)


def _one_line(query: str | None) -> str:
    return _text(query).replace("\n", "")


def fallback(error: DatabaseErrorInput) -> ClassifiedError:
    return ClassifiedError(
        message=f"Unrecognized Database Error: {error.message}. Detail: {_text(error.detail)}"
    )


# =================================================================================================================
# Rules
# =================================================================================================================

RuleRenderer = Callable[[re.Match, DatabaseErrorInput], "ClassifiedError | None"]


@dataclass(frozen=True)
class ClassifierRule:
    """
    One row of the classification table.

    Attributes:
        name: Short identifier, used in logs.
        pattern: Matched against the *whole* error message.
        render: Builds the result from the match; returning None means "use the fallback".
    """

    name: str
    pattern: re.Pattern
    render: RuleRenderer

    def apply(self, error: DatabaseErrorInput) -> ClassifiedError | None:
        match = self.pattern.fullmatch(error.message)
        if match is None:
            return None
        return self.render(match, error) or fallback(error)


def _too_many_clients(match: re.Match, error: DatabaseErrorInput) -> ClassifiedError:
    # The server is out of connection slots. Retryable.
    return ClassifiedError(
        message=f"Too many database connections, try again later. Running query: {_one_line(error.query)}",
        is_too_many_connections_error=True,
    )


def _query_timeout(match: re.Match, error: DatabaseErrorInput) -> ClassifiedError:
    # Raised by the client rather than the server, so there is no detail/table to use.
    return ClassifiedError(
        message=f"Query timed out. Running query: {_one_line(error.query)}",
        is_timeout_error=True,
    )


def _delete_foreign_key(match: re.Match, error: DatabaseErrorInput) -> ClassifiedError:
    # Usually a DELETE of a row other rows still point to; UPDATE can trigger it too.
    touched_table = match.group(1)
    method = _text(get_query_method(error.query))
    return ClassifiedError(
        message=f'Could not {method} item from "{touched_table}" table. Detail: {_text(error.detail)}'
    )


def _insert_foreign_key(match: re.Match, error: DatabaseErrorInput) -> ClassifiedError:
    # Insert/update pointing at a row that doesn't exist. The first parameter is not
    # guaranteed to be the item's id, but it is usually the most telling value.
    touched_table = match.group(1)
    method = _text(get_query_method(error.query))
    return ClassifiedError(
        message=(
            f'Could not {method} item "{_item_id(error.parameters)}" into "{touched_table}" table. '
            f"Detail: {_text(error.detail)}"
        )
    )


def _duplicate_key(match: re.Match, error: DatabaseErrorInput) -> ClassifiedError:
    # The message only names the constraint; the table comes from the error itself.
    method = _text(get_query_method(error.query))
    return ClassifiedError(
        message=(
            f'Could not {method} item "{_item_id(error.parameters)}" into "{_text(error.table)}" table. '
            f"Detail: {_text(error.detail)}"
        )
    )


_ANALYZE_QUERY = re.compile(r'(UPDATE|INSERT).+?"(.+?)"')


def _value_too_long(match: re.Match, error: DatabaseErrorInput) -> ClassifiedError | None:
    # The server says nothing about where the value went, so read method and table off the query.
    analyzed = _ANALYZE_QUERY.search(_text(error.query))
    if analyzed is None:
        return None
    method, touched_table = analyzed.groups()
    data_type = match.group(1)
    return ClassifiedError(
        message=(
            f'Could not {method} item into "{touched_table}" table. '
            f'A value is too long for db type "{data_type}".'
        )
    )


def _missing_relation(match: re.Match, error: DatabaseErrorInput) -> ClassifiedError:
    touched_table = match.group(1)
    method = _text(get_query_method(error.query))
    return ClassifiedError(
        message=f'Could not perform {method} operation on missing table "{touched_table}".'
    )


def _null_value(match: re.Match, error: DatabaseErrorInput) -> ClassifiedError:
    bad_column = match.group(1)
    method = _text(get_query_method(error.query))
    return ClassifiedError(
        message=(
            f'Could not {method} item in "{_text(error.table)}" table. '
            f'Unexpected null value for "{bad_column}" column.'
        )
    )


def _undefined_value(match: re.Match, error: DatabaseErrorInput) -> ClassifiedError:
    # Raised by client code rather than the server; `args` is whatever was being applied.
    return ClassifiedError(
        message=(
            "Unexpected undefined value applying data to database. "
            f"Args: {_to_json(error.args)}."
        )
    )


CLASSIFIER_RULES: tuple[ClassifierRule, ...] = (
    ClassifierRule(
        "too_many_clients",
        re.compile(r"sorry, too many clients already"),
        _too_many_clients,
    ),
    ClassifierRule(
        "query_timeout",
        re.compile(r"Query read timeout"),
        _query_timeout,
    ),
    ClassifierRule(
        "delete_foreign_key",
        re.compile(r'update or delete on table "(.+?)" violates foreign key constraint ".+?" on table "(.+?)"'),
        _delete_foreign_key,
    ),
    ClassifierRule(
        "insert_foreign_key",
        re.compile(r'insert or update on table "(.+?)" violates foreign key constraint "(.+?)"'),
        _insert_foreign_key,
    ),
    ClassifierRule(
        "duplicate_key",
        re.compile(r'duplicate key value violates unique constraint "(.+?)"'),
        _duplicate_key,
    ),
    ClassifierRule(
        "value_too_long",
        re.compile(r"value too long for type (.+?)"),
        _value_too_long,
    ),
    ClassifierRule(
        "missing_relation",
        re.compile(r'relation "(.+?)" does not exist'),
        _missing_relation,
    ),
    ClassifierRule(
        "null_value",
        re.compile(r'null value in column "(.+?)" violates not-null constraint'),
        _null_value,
    ),
    ClassifierRule(
        "undefined_value",
        re.compile(r"UNDEFINED_VALUE: Undefined values are not allowed"),
        _undefined_value,
    ),
)


def classify(error: DatabaseErrorInput, rules: Sequence[ClassifierRule] = CLASSIFIER_RULES) -> ClassifiedError:
    """
    Classify a database error. Never raises; unmatched errors get the generic fallback.

    Args:
        error: The raw error data, with `query`/`parameters` attached by the caller.
        rules: Ordered rule table (defaults to `CLASSIFIER_RULES`).

    Returns:
        ClassifiedError: message plus timeout / too-many-connections flags.
    """
    message = error.message or ""
    if message != error.message:
        error = DatabaseErrorInput(
            message=message,
            detail=error.detail,
            table=error.table,
            query=error.query,
            parameters=error.parameters,
            args=error.args,
        )

    for rule in rules:
        result = rule.apply(error)
        if result is not None:
            logger.debug("classifier.matched", extra={"rule": rule.name})
            return result

    logger.debug("classifier.unrecognized", extra={"message_snippet": message[:200]})
    return fallback(error)


__all__ = [
    "DatabaseErrorInput",
    "ClassifiedError",
    "ClassifierRule",
    "CLASSIFIER_RULES",
    "classify",
    "fallback",
    "get_query_method",
    "is_postgres_error",
    "unwrap_driver_error",
]
