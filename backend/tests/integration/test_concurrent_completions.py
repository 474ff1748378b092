"""Racing completions through the API: one ledger row per video, one offensive per user."""

import asyncio

import pytest
from sqlalchemy import func, select

from learnstreak.offensives.models import Offensive
from learnstreak.progress.models import VideoProgress

from factories import Catalog, at


async def complete_at(client, video_id, completed_at):
    return await client.post(
        f"/api/v1/progress/videos/{video_id}/complete", json={"completed_at": completed_at.isoformat()}
    )


async def offensive_rows(session_maker) -> list[tuple[int, int]]:
    async with session_maker() as session:
        result = await session.execute(select(Offensive.consecutive_days, Offensive.total_offensives))
        return [tuple(row) for row in result.all()]


@pytest.mark.asyncio
async def test_same_video_completed_concurrently_counts_once(
    client_factory, catalog: Catalog, session_maker
) -> None:
    client = await client_factory()
    video_id = catalog.video_ids[0]

    responses = await asyncio.gather(*(complete_at(client, video_id, at(1, 12)) for _ in range(4)))

    statuses = sorted(resp.status_code for resp in responses)
    assert statuses == [200, 409, 409, 409]
    for resp in responses:
        if resp.status_code == 409:
            assert resp.json()["error"]["code"] == "ALREADY_COMPLETED"

    assert await offensive_rows(session_maker) == [(1, 1)]
    async with session_maker() as session:
        count = await session.execute(
            select(func.count(VideoProgress.id)).where(VideoProgress.video_id == video_id)
        )
    assert count.scalar_one() == 1


@pytest.mark.asyncio
async def test_first_completions_of_distinct_videos_create_one_offensive(
    client_factory, catalog: Catalog, session_maker
) -> None:
    client = await client_factory()

    responses = await asyncio.gather(
        *(complete_at(client, video_id, at(1, 8 + i)) for i, video_id in enumerate(catalog.video_ids))
    )

    assert [resp.status_code for resp in responses] == [200, 200, 200, 200]
    new_offensive_flags = [resp.json()["offensive_result"]["is_new_offensive"] for resp in responses]
    assert new_offensive_flags.count(True) == 1

    rows = await offensive_rows(session_maker)
    assert len(rows) == 1
    assert rows[0][1] == 1
    async with session_maker() as session:
        completed = await session.execute(
            select(func.count(VideoProgress.id)).where(VideoProgress.is_completed.is_(True))
        )
    assert completed.scalar_one() == 4
