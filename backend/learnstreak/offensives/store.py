"""Offensive Store: locked read-modify-write of the one-row-per-user streak.

The ``offensives`` row is the per-user serialization point. Existing rows are
read with ``SELECT ... FOR UPDATE``; a missing row is created through
``INSERT ... ON CONFLICT DO NOTHING`` on the unique ``user_id`` so two first
completions cannot both commit "previous absent". The loser re-reads the
winner's row under lock and evaluates again.
"""

import logging
from datetime import datetime
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learnstreak.config.settings import get_settings
from learnstreak.database.upsert import insert_if_absent
from learnstreak.exceptions import ConcurrentUpdateError

from .evaluator import Evaluation, OffensiveState, evaluate, get_streak_timezone
from .models import Offensive
from .tiers import TierClassifier, get_tier_classifier


logger = logging.getLogger(__name__)


class OffensiveStore:
    """Transactional access to ``offensives``; never commits on its own."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        tz: ZoneInfo | None = None,
        classifier: TierClassifier | None = None,
        max_retries: int | None = None,
    ) -> None:
        self.session = session
        self.tz = tz or get_streak_timezone()
        self.classifier = classifier or get_tier_classifier()
        self.max_retries = (
            max_retries if max_retries is not None else get_settings().OFFENSIVE_UPSERT_MAX_RETRIES
        )

    async def get(self, user_id: UUID, *, for_update: bool = False) -> Offensive | None:
        stmt = select(Offensive).where(Offensive.user_id == user_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def apply_completion(self, user_id: UUID, event_at: datetime) -> tuple[Offensive, Evaluation]:
        """Evaluate a completion against the locked row and persist the result."""
        for attempt in range(1, self.max_retries + 1):
            current = await self.get(user_id, for_update=True)
            previous = OffensiveState.from_model(current) if current is not None else None
            evaluation = evaluate(previous, event_at, tz=self.tz, classifier=self.classifier)

            if current is not None:
                if evaluation.changed:
                    self._assign(current, evaluation.state)
                    await self.session.flush()
                return current, evaluation

            created = await self._insert(user_id, evaluation.state)
            if created is not None:
                return created, evaluation

            logger.info(
                "Offensive for user %s was created concurrently, re-evaluating (attempt %d/%d)",
                user_id,
                attempt,
                self.max_retries,
            )

        raise ConcurrentUpdateError("Offensive", str(user_id), self.max_retries)

    async def overwrite(self, user_id: UUID, state: OffensiveState) -> tuple[Offensive, bool]:
        """Replace the user's streak with ``state``; returns (row, created)."""
        for _attempt in range(1, self.max_retries + 1):
            current = await self.get(user_id, for_update=True)
            if current is not None:
                self._assign(current, state)
                await self.session.flush()
                return current, False

            created = await self._insert(user_id, state)
            if created is not None:
                return created, True

        raise ConcurrentUpdateError("Offensive", str(user_id), self.max_retries)

    async def _insert(self, user_id: UUID, state: OffensiveState) -> Offensive | None:
        inserted_id = await insert_if_absent(
            self.session,
            Offensive,
            {
                "user_id": user_id,
                "tier": state.tier,
                "consecutive_days": state.consecutive_days,
                "last_video_completed_at": state.last_video_completed_at,
                "streak_start_date": state.streak_start_date,
                "total_offensives": state.total_offensives,
            },
            ["user_id"],
        )
        if inserted_id is None:
            return None
        return await self.get(user_id, for_update=True)

    @staticmethod
    def _assign(offensive: Offensive, state: OffensiveState) -> None:
        offensive.tier = state.tier
        offensive.consecutive_days = state.consecutive_days
        offensive.last_video_completed_at = state.last_video_completed_at
        offensive.streak_start_date = state.streak_start_date
        offensive.total_offensives = state.total_offensives
