from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from ..config.settings import Settings, get_settings


def create_engine(settings: Settings | None = None) -> AsyncEngine:
    """Create the AsyncEngine (and its connection pool) for the configured server.

    Unlike an application, the library never builds an engine at import time: each PgClient
    creates one lazily unless an engine is passed in explicitly.
    """
    settings = settings or get_settings()
    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.SQLALCHEMY_ECHO,   # Set to False in production
        pool_pre_ping=True,              # Enables connection health checks
    )
