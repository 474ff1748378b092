"""Database package: declarative base, async engine and session helpers."""

from .base import Base, create_all_tables
from .session import DbSession, async_session_maker, get_db_session


__all__ = ["Base", "DbSession", "async_session_maker", "create_all_tables", "get_db_session"]
