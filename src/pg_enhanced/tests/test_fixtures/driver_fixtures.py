"""
In-memory stand-ins for the SQLAlchemy engine and the asyncpg connection underneath it.

They implement only what PgClient touches:
    engine.connect() / engine.dispose()
    connection.get_raw_connection().driver_connection / connection.close()
    driver.prepare(...).fetch(...) / driver.transaction() / driver.cursor(...)

Every call is recorded on the fake so tests can assert on what was sent.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from pg_enhanced.config.settings import Settings
from pg_enhanced.sql.registry import ClientRegistry


class FakePostgresError(Exception):
    """Shaped like an asyncpg PostgresError: sqlstate plus message/detail/table_name."""

    def __init__(self, message: str, *, sqlstate: str = "23505", detail: str | None = None,
                 table_name: str | None = None):
        super().__init__(message)
        self.message = message
        self.sqlstate = sqlstate
        self.detail = detail
        self.table_name = table_name


class FakeStatement:
    def __init__(self, driver: "FakeDriver", text: str):
        self.driver = driver
        self.text = text

    async def fetch(self, *args: Any, timeout: float | None = None):
        self.driver.executed.append((self.text, args, timeout))
        if self.driver.error is not None:
            raise self.driver.error
        return list(self.driver.rows)

    def get_statusmsg(self) -> str | None:
        return self.driver.status


class FakeTransaction:
    def __init__(self, driver: "FakeDriver"):
        self.driver = driver

    async def __aenter__(self):
        self.driver.transactions.append("begin")
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.driver.transactions.append("rollback" if exc_type else "commit")
        return False


class FakeCursor:
    def __init__(self, driver: "FakeDriver", text: str, args: tuple, prefetch: int | None):
        driver.cursors.append((text, args, prefetch))
        self._driver = driver
        self._rows = iter(driver.rows)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._driver.error is not None:
            raise self._driver.error
        try:
            return next(self._rows)
        except StopIteration:
            raise StopAsyncIteration


class FakeDriver:
    def __init__(self, rows=(), *, status: str | None = "SELECT 0", error: BaseException | None = None):
        self.rows = list(rows)
        self.status = status
        self.error = error
        self.executed: list[tuple] = []
        self.cursors: list[tuple] = []
        self.transactions: list[str] = []

    async def prepare(self, text: str, timeout: float | None = None) -> FakeStatement:
        return FakeStatement(self, text)

    def transaction(self) -> FakeTransaction:
        return FakeTransaction(self)

    def cursor(self, text: str, *args: Any, prefetch: int | None = None) -> FakeCursor:
        return FakeCursor(self, text, args, prefetch)


class FakeConnection:
    def __init__(self, driver: FakeDriver):
        self.driver = driver
        self.closed = False

    async def get_raw_connection(self):
        return SimpleNamespace(driver_connection=self.driver)

    async def close(self) -> None:
        self.closed = True


class FakeEngine:
    def __init__(self, driver: FakeDriver, *, connect_error: BaseException | None = None):
        self.driver = driver
        self.connect_error = connect_error
        self.connections: list[FakeConnection] = []
        self.disposed = False

    async def connect(self) -> FakeConnection:
        if self.connect_error is not None:
            raise self.connect_error
        connection = FakeConnection(self.driver)
        self.connections.append(connection)
        return connection

    async def dispose(self) -> None:
        self.disposed = True


@pytest.fixture()
def client_settings() -> Settings:
    return Settings(PG_ENHANCED_LOG_SQL=False, CURSOR_PREFETCH=50, QUERY_TIMEOUT_SECONDS=None)


@pytest.fixture()
def fake_driver() -> FakeDriver:
    return FakeDriver(rows=[{"id": 1, "name": "Ada"}, {"id": 2, "name": "Grace"}], status="SELECT 2")


@pytest.fixture()
def fake_engine(fake_driver: FakeDriver) -> FakeEngine:
    return FakeEngine(fake_driver)


@pytest.fixture()
def registry() -> ClientRegistry:
    return ClientRegistry()
