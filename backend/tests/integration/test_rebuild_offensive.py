"""Rebuilding an offensive from the progress ledger."""

from datetime import datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from learnstreak.progress.models import VideoProgress

from factories import Catalog, at


def backdated(catalog: Catalog, video_index: int, completed_at: datetime) -> VideoProgress:
    return VideoProgress(
        user_id=catalog.user_id,
        video_id=catalog.video_ids[video_index],
        sub_course_id=catalog.sub_course_id,
        is_completed=True,
        completed_at=completed_at,
    )


@pytest.mark.asyncio
async def test_rebuild_repairs_after_backdated_rows(
    client_factory, catalog: Catalog, db_session: AsyncSession
) -> None:
    client = await client_factory()
    resp = await client.post(
        f"/api/v1/progress/videos/{catalog.video_ids[0]}/complete",
        json={"completed_at": at(5).isoformat()},
    )
    assert resp.json()["offensive_result"]["offensive"]["consecutive_days"] == 1

    # Completions written behind the engine's back, before the counted day
    db_session.add_all([backdated(catalog, 1, at(3)), backdated(catalog, 2, at(4))])
    await db_session.commit()

    resp = await client.post("/api/v1/offensives/me/rebuild")

    assert resp.status_code == 200
    data = resp.json()
    assert data["created"] is False
    assert data["completion_days"] == 3
    assert data["offensive"]["consecutive_days"] == 3
    assert data["offensive"]["total_offensives"] == 1
    assert datetime.fromisoformat(data["offensive"]["streak_start_date"]) == at(3, 0)
    assert datetime.fromisoformat(data["offensive"]["last_video_completed_at"]) == at(5)


@pytest.mark.asyncio
async def test_rebuild_creates_missing_row(client_factory, catalog: Catalog, db_session: AsyncSession) -> None:
    db_session.add_all(
        [
            backdated(catalog, 0, at(1)),
            backdated(catalog, 1, at(2)),
            backdated(catalog, 2, at(2, 20)),
            backdated(catalog, 3, at(7)),
        ]
    )
    await db_session.commit()
    client = await client_factory()

    resp = await client.post("/api/v1/offensives/me/rebuild")

    assert resp.status_code == 200
    data = resp.json()
    assert data["created"] is True
    assert data["offensive"]["consecutive_days"] == 1
    assert data["offensive"]["total_offensives"] == 2
    assert datetime.fromisoformat(data["offensive"]["last_video_completed_at"]) == at(7)


@pytest.mark.asyncio
async def test_rebuild_without_completions_is_not_found(client_factory, catalog: Catalog) -> None:
    client = await client_factory()

    resp = await client.post("/api/v1/offensives/me/rebuild")

    assert resp.status_code == 404
    assert resp.json()["error"]["metadata"]["resource_type"] == "Offensive"
