"""Database connection settings for the form store.

``DATABASE_URL`` wins when set; otherwise the URL is assembled from the
``PG_*`` variables (docker-compose style).  Alembic needs the plain libpq
URL and the server needs the asyncpg one; both derive from the same
settings.
"""

import os
from dataclasses import dataclass

_ASYNC_PREFIX = "postgresql+asyncpg://"
_SYNC_PREFIX = "postgresql://"


@dataclass(frozen=True)
class DatabaseSettings:
    host: str = "localhost"
    port: int = 5432
    user: str = "survey"
    password: str = "survey"
    database: str = "survey_flow"
    # Full URL override (either driver prefix accepted)
    url: str | None = None

    @property
    def sync_url(self) -> str:
        if self.url:
            return self.url.replace(_ASYNC_PREFIX, _SYNC_PREFIX, 1)
        return (
            f"{_SYNC_PREFIX}{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.database}"
        )

    @property
    def async_url(self) -> str:
        return self.sync_url.replace(_SYNC_PREFIX, _ASYNC_PREFIX, 1)


def load_database_settings() -> DatabaseSettings:
    """Read ``DATABASE_URL`` / ``PG_*`` from the environment."""
    return DatabaseSettings(
        host=os.getenv("PG_HOST", "localhost"),
        port=int(os.getenv("PG_PORT", "5432")),
        user=os.getenv("PG_USER", "survey"),
        password=os.getenv("PG_PASSWORD", "survey"),
        database=os.getenv("PG_DATABASE", "survey_flow"),
        url=os.getenv("DATABASE_URL") or None,
    )


def get_sync_url() -> str:
    """libpq URL for Alembic, which runs migrations synchronously."""
    return load_database_settings().sync_url


def get_async_url() -> str:
    """asyncpg URL for the runtime engine."""
    return load_database_settings().async_url
