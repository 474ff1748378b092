"""Shared fixtures: per-test SQLite database, seeded catalog rows and an API client.

Settings are read once and cached, so the environment is pinned before any
``learnstreak`` import.
"""

import os


os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["AUTH_PROVIDER"] = "none"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["STREAK_TIMEZONE"] = "UTC"

from collections.abc import AsyncGenerator, Awaitable, Callable
from uuid import UUID, uuid4

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from learnstreak.auth.config import DEFAULT_USER_ID
from learnstreak.auth.security import create_access_token
from learnstreak.catalog.models import SubCourse, User, Video
from learnstreak.database.base import create_all_tables
from learnstreak.database.session import get_db_session
from learnstreak.main import app

from factories import Catalog


SessionMaker = async_sessionmaker[AsyncSession]


@pytest_asyncio.fixture
async def session_maker(tmp_path) -> AsyncGenerator[SessionMaker, None]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_all_tables(engine)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_maker: SessionMaker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def catalog(db_session: AsyncSession) -> Catalog:
    user = User(id=DEFAULT_USER_ID, name="Default User", email="default@example.com")
    sub_course = SubCourse(id=uuid4(), name="Streak Basics")
    videos = [Video(id=uuid4(), sub_course_id=sub_course.id, title=f"Video {i}") for i in range(1, 5)]
    db_session.add_all([user, sub_course, *videos])
    await db_session.commit()
    return Catalog(user_id=user.id, sub_course_id=sub_course.id, video_ids=[video.id for video in videos])


@pytest_asyncio.fixture
async def client_factory(
    session_maker: SessionMaker,
) -> AsyncGenerator[Callable[..., Awaitable[AsyncClient]], None]:
    """Build API clients bound to the test database.

    ``client_factory()`` uses single-user mode; ``client_factory(user_id)``
    attaches a bearer token for that user.
    """
    clients: list[AsyncClient] = []

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session

    async def factory(user_id: UUID | None = None) -> AsyncClient:
        headers = {}
        if user_id is not None:
            headers["Authorization"] = f"Bearer {create_access_token(user_id)}"
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test", headers=headers)
        clients.append(client)
        return client

    yield factory

    app.dependency_overrides.clear()
    for client in clients:
        await client.aclose()
