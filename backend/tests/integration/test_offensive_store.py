"""Concurrency guards of the offensive store and the progress ledger."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from learnstreak.catalog.facade import VideoRef
from learnstreak.database.upsert import insert_if_absent
from learnstreak.exceptions import AlreadyCompletedError, ConcurrentUpdateError
from learnstreak.offensives.evaluator import OffensiveState
from learnstreak.offensives.models import Offensive, OffensiveTier
from learnstreak.offensives.store import OffensiveStore
from learnstreak.progress.ledger import ProgressLedger

from factories import Catalog, at


def offensive_values(catalog: Catalog) -> dict:
    return {
        "user_id": catalog.user_id,
        "tier": OffensiveTier.NORMAL,
        "consecutive_days": 1,
        "last_video_completed_at": at(1),
        "streak_start_date": at(1, 0),
        "total_offensives": 1,
    }


class StaleReadStore(OffensiveStore):
    """Misses the existing row on its first locked read, like a racing first completion."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.locked_reads = 0

    async def get(self, user_id, *, for_update: bool = False):
        if for_update:
            self.locked_reads += 1
            if self.locked_reads == 1:
                return None
        return await super().get(user_id, for_update=for_update)


@pytest.mark.asyncio
async def test_insert_if_absent_reports_conflicts(db_session: AsyncSession, catalog: Catalog) -> None:
    first = await insert_if_absent(db_session, Offensive, offensive_values(catalog), ["user_id"])
    second = await insert_if_absent(db_session, Offensive, offensive_values(catalog), ["user_id"])
    await db_session.commit()

    assert first is not None
    assert second is None
    count = await db_session.execute(select(func.count(Offensive.id)))
    assert count.scalar_one() == 1


@pytest.mark.asyncio
async def test_losing_first_insert_re_evaluates_against_winner(db_session: AsyncSession, catalog: Catalog) -> None:
    await insert_if_absent(db_session, Offensive, offensive_values(catalog), ["user_id"])
    store = StaleReadStore(db_session)

    offensive, evaluation = await store.apply_completion(catalog.user_id, at(2))

    assert store.locked_reads >= 2
    assert evaluation.is_new_offensive is False
    assert evaluation.day_delta == 1
    assert offensive.consecutive_days == 2
    count = await db_session.execute(select(func.count(Offensive.id)))
    assert count.scalar_one() == 1


@pytest.mark.asyncio
async def test_retries_are_bounded(db_session: AsyncSession, catalog: Catalog, monkeypatch) -> None:
    store = OffensiveStore(db_session, max_retries=2)
    attempts = []

    async def never_inserted(user_id, state):
        attempts.append(state)

    monkeypatch.setattr(store, "_insert", never_inserted)

    with pytest.raises(ConcurrentUpdateError) as exc_info:
        await store.apply_completion(catalog.user_id, at(1))

    assert exc_info.value.attempts == 2
    assert len(attempts) == 2


@pytest.mark.asyncio
async def test_same_day_earlier_event_leaves_row_untouched(db_session: AsyncSession, catalog: Catalog) -> None:
    store = OffensiveStore(db_session)
    offensive, _ = await store.apply_completion(catalog.user_id, at(1, 18))
    await db_session.commit()
    updated_at = offensive.updated_at

    offensive, evaluation = await store.apply_completion(catalog.user_id, at(1, 9))
    await db_session.commit()

    assert evaluation.changed is False
    assert offensive.updated_at == updated_at
    assert OffensiveState.from_model(offensive).last_video_completed_at == at(1, 18)


@pytest.mark.asyncio
async def test_ledger_rejects_second_completion(db_session: AsyncSession, catalog: Catalog) -> None:
    ledger = ProgressLedger(db_session)
    video = VideoRef(id=catalog.video_ids[0], sub_course_id=catalog.sub_course_id)

    progress = await ledger.mark_completed(catalog.user_id, video, at(1))
    assert progress.is_completed is True

    with pytest.raises(AlreadyCompletedError) as exc_info:
        await ledger.mark_completed(catalog.user_id, video, at(2))

    assert exc_info.value.video_id == video.id
    assert await ledger.completion_timestamps(catalog.user_id) != []
    assert await ledger.count_completed(catalog.user_id, catalog.sub_course_id) == 1


@pytest.mark.asyncio
async def test_explicit_zero_retries_is_kept(db_session: AsyncSession, catalog: Catalog) -> None:
    store = OffensiveStore(db_session, max_retries=0)

    with pytest.raises(ConcurrentUpdateError) as exc_info:
        await store.apply_completion(catalog.user_id, at(1))

    assert store.max_retries == 0
    assert exc_info.value.attempts == 0
    assert await store.get(catalog.user_id) is None
