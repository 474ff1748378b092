"""Time helpers shared by the ledger and the streak engine.

Everything persisted is an aware UTC timestamp. SQLite hands back naive values,
so reads go through ``as_utc`` before any comparison.
"""

from collections.abc import Callable
from datetime import UTC, datetime


Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
