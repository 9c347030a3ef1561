"""
PgClient: a thin transport over a SQLAlchemy AsyncEngine.

SQLAlchemy owns the pool and the connection lifecycle. Assembled queries are sent through
the raw asyncpg connection underneath, so the `$n` placeholders produced by the assembler
reach PostgreSQL unchanged.

    client = PgClient()
    rows = await client.sql(
        ["SELECT * FROM users WHERE ", ""],
        client.escape.and_dictionary({"id": 7}),
    )
    await client.end()

Every failure (connecting or executing) is raised as a `DBError` that carries the SQL text
and parameters of the attempted query.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Sequence

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from ..config.settings import Settings, get_settings
from ..db.session import create_engine
from ..exceptions.base import TIMEOUT_MARKER, DBError
from .escape import Escape
from .registry import ClientRegistry, default_registry
from .template import QueryConfig, assemble, assemble_template

logger = logging.getLogger(__name__)


class QueryResult(list):
    """
    Rows of one query, as plain dicts.

    Also carries what was sent (`query`, `parameters`) and the command status reported by
    the server (e.g. "INSERT 0 3"), or None when the driver didn't report one.
    """

    def __init__(
        self,
        rows: Sequence[dict[str, Any]] = (),
        *,
        query: str,
        parameters: tuple[Any, ...] | None = None,
        status: str | None = None,
    ):
        super().__init__(rows)
        self.query = query
        self.parameters = parameters
        self.status = status

    def __repr__(self) -> str:
        return f"QueryResult(rows={len(self)}, status={self.status!r})"


def to_query_config(params: QueryConfig | str, values: Sequence[Any] | None = None) -> QueryConfig:
    if isinstance(params, QueryConfig):
        if values is not None:
            raise TypeError("values must not be passed together with a QueryConfig")
        return params
    if isinstance(params, str):
        return QueryConfig(text=params, values=tuple(values) if values else None)
    raise TypeError(f"expected QueryConfig or str, got {type(params).__name__}")


def _to_template_config(strings: Any, args: tuple[Any, ...]) -> QueryConfig:
    if not args and hasattr(strings, "strings") and hasattr(strings, "values"):
        return assemble_template(strings)
    return assemble(strings, *args)


class PgClient:
    """
    Query client bound to one pooled connection.

    Args:
        settings: Connection and query settings; defaults to `get_settings()`.
        engine: An existing AsyncEngine to borrow connections from. When omitted the client
            creates its own engine and disposes of it in `end()`.
        registry: Where the client registers itself while connected. Defaults to the
            process-wide `default_registry()`.
        auto_close: Register with the registry so `close_all()` ends this client.
    """

    escape = Escape

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        engine: AsyncEngine | None = None,
        registry: ClientRegistry | None = None,
        auto_close: bool = True,
    ):
        self.settings = settings or get_settings()
        self._engine = engine
        self._owns_engine = engine is None
        self._registry = registry if registry is not None else default_registry()
        self._auto_close = auto_close
        self._connection: AsyncConnection | None = None
        self._connect_lock = asyncio.Lock()
        self.has_closed = False

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = create_engine(self.settings)
        return self._engine

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    # -----------------------
    # Lifecycle
    # -----------------------

    async def connect(self) -> None:
        """Check out a connection from the pool. Calling it again while connected is a no-op."""
        if self._connection is not None:
            return
        async with self._connect_lock:
            if self._connection is not None:
                return
            self._connection = await self.engine.connect()
            self.has_closed = False
            if self._auto_close:
                self._registry.register(self)
            logger.debug(
                "client.connected",
                extra={
                    "host": self.settings.POSTGRES_HOST,
                    "database": self.settings.POSTGRES_DATABASE,
                },
            )

    async def end(self) -> None:
        """Return the connection to the pool and, if the client created its engine, dispose of it."""
        self._registry.deregister(self)
        self.has_closed = True
        connection, self._connection = self._connection, None
        if connection is not None:
            await connection.close()
        if self._owns_engine and self._engine is not None:
            engine, self._engine = self._engine, None
            await engine.dispose()
        logger.debug("client.ended")

    async def __aenter__(self) -> "PgClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.end()

    # -----------------------
    # Queries
    # -----------------------

    async def query(self, params: QueryConfig | str, values: Sequence[Any] | None = None) -> QueryResult:
        """
        Run one query and return all of its rows.

        Raises:
            DBError: On any connection or execution failure, with `query` and `parameters` set.
        """
        config = to_query_config(params, values)
        self._log_query(config)
        timeout = self.settings.QUERY_TIMEOUT_SECONDS

        try:
            driver = await self._driver_connection()
            statement = await driver.prepare(config.text, timeout=timeout)
            records = await statement.fetch(*(config.values or ()), timeout=timeout)
        except Exception as exc:
            raise self._wrap_error(exc, config) from exc

        return QueryResult(
            [dict(record) for record in records],
            query=config.text,
            parameters=config.values,
            status=statement.get_statusmsg(),
        )

    async def sql(self, strings: Any, *args: Any) -> QueryResult:
        """Assemble a template (fragments + interpolated values) and run it with `query()`."""
        return await self.query(_to_template_config(strings, args))

    async def cursor_query(
        self,
        params: QueryConfig | str,
        values: Sequence[Any] | None = None,
        *,
        prefetch: int | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """
        Stream rows with a server-side cursor.

        The cursor lives inside a transaction that is committed once the iteration is
        exhausted, and rolled back if the consumer stops early or an error is raised.
        """
        config = to_query_config(params, values)
        self._log_query(config)
        prefetch = prefetch or self.settings.CURSOR_PREFETCH

        try:
            driver = await self._driver_connection()
        except Exception as exc:
            raise self._wrap_error(exc, config) from exc

        try:
            async with driver.transaction():
                async for record in driver.cursor(config.text, *(config.values or ()), prefetch=prefetch):
                    yield dict(record)
        except Exception as exc:
            raise self._wrap_error(exc, config) from exc

    async def cursor_sql(self, strings: Any, *args: Any) -> AsyncIterator[dict[str, Any]]:
        async for row in self.cursor_query(_to_template_config(strings, args)):
            yield row

    # -----------------------
    # Internals
    # -----------------------

    async def _driver_connection(self) -> Any:
        await self.connect()
        raw = await self._connection.get_raw_connection()
        return raw.driver_connection

    def _log_query(self, config: QueryConfig) -> None:
        if self.settings.PG_ENHANCED_LOG_SQL:
            logger.info(
                "detailed-sql-log",
                extra={
                    "query_text": config.text,
                    "query_values": list(config.values or ()),
                },
            )

    def _wrap_error(self, exc: Exception, config: QueryConfig) -> DBError:
        if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
            timeout_error = TimeoutError(TIMEOUT_MARKER)
            timeout_error.__cause__ = exc
            exc = timeout_error

        error = DBError(exc, query=config.text, parameters=config.values)
        logger.warning(
            "client.query_failed",
            extra={
                "status_code": error.status_code,
                "error_type": type(error.original_error).__name__,
                "is_timeout_error": error.is_timeout_error,
                "is_too_many_connections_error": error.is_too_many_connections_error,
            },
        )
        return error


__all__ = ["PgClient", "QueryResult", "to_query_config"]
