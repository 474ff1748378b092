"""Dialect-aware INSERT ... ON CONFLICT helpers.

Unique constraints are the engine's concurrency guards: a conflicting insert
either waits for the competing transaction and then does nothing (Postgres) or
is serialized by the single writer lock (SQLite). Callers learn whether their
row was written from the RETURNING clause.
"""

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def dialect_insert(session: AsyncSession) -> Any:
    """Return the ``insert`` construct that supports ON CONFLICT for this bind."""
    name = session.bind.dialect.name
    if name == "postgresql":
        return postgresql.insert
    if name == "sqlite":
        return sqlite.insert
    msg = f"INSERT ... ON CONFLICT is not supported for dialect {name!r}"
    raise NotImplementedError(msg)


async def insert_if_absent(
    session: AsyncSession,
    model: type,
    values: dict[str, Any],
    conflict_columns: list[str],
) -> Any | None:
    """Insert one row unless it violates ``conflict_columns``; return its id or None."""
    insert = dialect_insert(session)
    stmt = (
        insert(model)
        .values(**values)
        .on_conflict_do_nothing(index_elements=conflict_columns)
        .returning(model.id)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()
