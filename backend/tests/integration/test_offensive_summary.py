"""Offensive summary: liveness, history, stats and milestones."""

from datetime import UTC, date, datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from learnstreak.config.settings import get_settings
from learnstreak.offensives.service import OffensiveService
from learnstreak.offensives.store import OffensiveStore
from learnstreak.progress.service import CompletionService

from factories import Catalog, at


async def record(session: AsyncSession, catalog: Catalog, *timestamps: datetime) -> None:
    service = CompletionService(session, clock=lambda: at(28))
    for video_id, completed_at in zip(catalog.video_ids, timestamps, strict=False):
        await service.record_completion(catalog.user_id, video_id, completed_at)


@pytest_asyncio.fixture
async def two_runs(db_session: AsyncSession, catalog: Catalog) -> Catalog:
    """Days 1-2 as a first run, days 5-6 as a second one."""
    await record(db_session, catalog, at(1), at(2), at(5), at(6))
    return catalog


@pytest.mark.asyncio
async def test_summary_of_live_streak(db_session: AsyncSession, two_runs: Catalog) -> None:
    summary = await OffensiveService(db_session).get_summary(two_runs.user_id, today=date(2024, 3, 7))

    assert summary.current_offensive is not None
    assert summary.current_offensive.consecutive_days == 2
    assert summary.stats.current_streak == 2
    assert summary.stats.longest_streak == 2
    assert summary.stats.total_offensives == 2
    assert summary.stats.current_tier == "NORMAL"
    assert [(entry.date.day, entry.consecutive_days) for entry in summary.history] == [
        (1, 1),
        (2, 2),
        (5, 1),
        (6, 2),
    ]
    assert all(entry.has_offensive for entry in summary.history)
    assert summary.next_milestones.days_to_super == 5
    assert summary.next_milestones.days_to_ultra == 28
    assert summary.next_milestones.days_to_king == 178
    assert summary.next_milestones.days_to_infinity == 363


@pytest.mark.asyncio
async def test_summary_of_lapsed_streak_does_not_rewrite_row(
    db_session: AsyncSession, two_runs: Catalog
) -> None:
    summary = await OffensiveService(db_session).get_summary(two_runs.user_id, today=date(2024, 3, 8))

    assert summary.current_offensive is None
    assert summary.stats.current_streak == 0
    assert summary.stats.longest_streak == 2
    assert summary.stats.total_offensives == 2
    assert summary.next_milestones.days_to_super == 7

    stored = await OffensiveStore(db_session).get(two_runs.user_id)
    assert stored is not None
    assert stored.consecutive_days == 2


@pytest.mark.asyncio
async def test_history_window_is_configurable(db_session: AsyncSession, two_runs: Catalog) -> None:
    settings = get_settings().model_copy(update={"OFFENSIVE_HISTORY_DAYS": 3})

    summary = await OffensiveService(db_session, settings=settings).get_summary(
        two_runs.user_id, today=date(2024, 3, 7)
    )

    assert [entry.date.day for entry in summary.history] == [5, 6]


@pytest.mark.asyncio
async def test_summary_without_completions(db_session: AsyncSession, catalog: Catalog) -> None:
    summary = await OffensiveService(db_session).get_summary(catalog.user_id, today=date(2024, 3, 7))

    assert summary.current_offensive is None
    assert summary.history == []
    assert summary.stats.total_offensives == 0
    assert summary.stats.longest_streak == 0


@pytest.mark.asyncio
async def test_summary_endpoint(client_factory, catalog: Catalog) -> None:
    client = await client_factory()
    now = datetime.now(UTC)
    for video_id, completed_at in ((catalog.video_ids[0], now - timedelta(days=1)), (catalog.video_ids[1], now)):
        resp = await client.post(
            f"/api/v1/progress/videos/{video_id}/complete",
            json={"completed_at": completed_at.isoformat()},
        )
        assert resp.status_code == 200

    resp = await client.get("/api/v1/offensives/me")

    assert resp.status_code == 200
    data = resp.json()
    assert data["current_offensive"]["consecutive_days"] == 2
    assert data["stats"] == {
        "total_offensives": 1,
        "current_streak": 2,
        "longest_streak": 2,
        "current_tier": "NORMAL",
    }
    assert len(data["history"]) == 2
    assert data["next_milestones"]["days_to_super"] == 5
