from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all database models."""


async def create_all_tables(db_engine: AsyncEngine | None = None) -> None:
    """Create all tables in the database."""
    if db_engine is None:
        from .engine import engine as db_engine

    # Register every model with Base.metadata before create_all
    from learnstreak.catalog import models as _catalog_models  # noqa: F401
    from learnstreak.offensives import models as _offensive_models  # noqa: F401
    from learnstreak.progress import models as _progress_models  # noqa: F401

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
