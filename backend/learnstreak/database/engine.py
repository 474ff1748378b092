from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from learnstreak.config.settings import get_settings


def create_app_engine(database_url: str | None = None) -> AsyncEngine:
    """Create the async engine for Postgres (asyncpg) or a local SQLite file.

    - Postgres: standard pool with pre-ping, LIFO reuse of hot connections.
    - SQLite (aiosqlite): driver defaults, used for local runs and the test suite.
      Row locks are not available there; SQLite serializes writers instead.
    """
    settings = get_settings()
    database_url = database_url or settings.DATABASE_URL

    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=settings.DATABASE_ECHO)

    return create_async_engine(
        database_url,
        echo=settings.DATABASE_ECHO,
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,  # ~1h
        pool_pre_ping=True,
        pool_use_lifo=True,
    )


# Create the engine
engine: AsyncEngine = create_app_engine()
