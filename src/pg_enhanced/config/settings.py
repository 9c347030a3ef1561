from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from pathlib import Path
from typing import Literal
from functools import lru_cache
from sqlalchemy.engine import URL
from ..validators.config_validators import to_uppercase, to_lowercase, empty_to_none

class Settings(BaseSettings):
    """
    pg_enhanced settings loaded from the environment (and an optional `.env` file).

    Every value can also be overridden by passing keyword arguments, e.g.
    `Settings(POSTGRES_HOST="db.internal")`, which is how clients get per-instance configs.
    """

    # Environment
    ENV: Literal["development", "testing", "staging", "production"] = "development"

    # Database configuration
    POSTGRES_DRIVER: str = "asyncpg"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DATABASE: str = "main"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"

    # Query behaviour
    PG_ENHANCED_LOG_SQL: bool = False        # log every query config at INFO ("detailed-sql-log")
    QUERY_TIMEOUT_SECONDS: float | None = None
    CURSOR_PREFETCH: int = 100

    # SQLAlchemy
    SQLALCHEMY_ECHO: bool = False

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"
    LOG_TO_STDOUT: bool = True
    LOG_DIR: Path = Path("/var/log/pg-enhanced")
    LOG_MAX_BYTES: int = 10_000_000  # 10 MB
    LOG_BACKUP_COUNT: int = 5
    ENABLE_SQL_LOGGING: bool = False

    # --- Derived settings ---
    @property
    def DATABASE_URL(self) -> URL:
        """
        Return the SQLAlchemy URL for the configured server.

        `URL.create` escapes the credentials, so passwords with `@` or `/` are safe.
        Render with `url.render_as_string(hide_password=True)` before logging it.
        """
        return URL.create(
            drivername=f"postgresql+{self.POSTGRES_DRIVER}",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            database=self.POSTGRES_DATABASE,
        )

    # --- Validators ---
    @field_validator("LOG_LEVEL", mode="before")
    def normalize_log_level(cls, v: str | None) -> str | None:
        """
        Normalize LOG_LEVEL to uppercase, the form the logging module expects.
        """
        return to_uppercase(v)

    @field_validator("LOG_FORMAT", mode="before")
    def normalize_log_format(cls, v: str | None) -> str | None:
        """
        Normalize the LOG_FORMAT environment variable value to lowercase.
        """
        return to_lowercase(v)

    @field_validator("QUERY_TIMEOUT_SECONDS", mode="before")
    def normalize_query_timeout(cls, v):
        return empty_to_none(v)

    # --- Config ---
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

# get_settings() takes no arguments and always returns the same settings from the environment,
# so it is cached. Call get_settings.cache_clear() after changing the environment in tests.
@lru_cache()
def get_settings() -> Settings:
    return Settings()
