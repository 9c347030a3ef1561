"""
Core pytest configuration for the entire test suite.

No live PostgreSQL server is needed: the client tests run against the in-memory engine and
driver from `test_fixtures/driver_fixtures.py`, which are imported below so every test module
can use them without an import.
"""

from __future__ import annotations

import logging

# -------------------------------
# Early logging tuning (IMPORTANT)
# -------------------------------
# Keep this block above the project imports so library loggers are already quiet while
# pytest collects the test modules.
NOISY_LOGGERS = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "asyncpg",
    "asyncio",
    "httpx",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

import pytest
from pytest import FixtureRequest

from pg_enhanced.config.settings import Settings, get_settings
from pg_enhanced.core.logging.builder import setup_logging
from pg_enhanced.sql.registry import default_registry

logger = logging.getLogger(__name__)


@pytest.fixture(scope="session", autouse=True)
def configure_logging(request: FixtureRequest):
    """
    Install the package logging configuration for the whole session.

    Logs go to the console only (LOG_TO_STDOUT) so the suite never writes under LOG_DIR.
    dictConfig drops pytest's capture handler from the root logger, so it is re-attached
    to keep `caplog.records` working.
    """
    setup_logging(Settings(ENV="testing", LOG_TO_STDOUT=True, LOG_FORMAT="text", LOG_LEVEL="DEBUG"))

    caplog_plugin = request.config.pluginmanager.getplugin("logging-plugin")
    handler = getattr(caplog_plugin, "caplog_handler", None)
    if handler is not None:
        logging.getLogger().addHandler(handler)

    yield


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """get_settings() is cached; tests that patch the environment must not leak into others."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
async def close_open_clients():
    """Teardown: end every client a test left registered with the default registry."""
    yield
    closed = await default_registry().close_all()
    if closed:
        logger.warning("tests.clients_left_open", extra={"closed": closed})


# Driver fakes
from .test_fixtures.driver_fixtures import (  # noqa: E402
    client_settings,
    fake_driver,
    fake_engine,
    registry,
)
