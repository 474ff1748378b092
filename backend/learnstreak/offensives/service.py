"""Offensive reads and maintenance built on the progress ledger."""

import logging
from datetime import date, timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from learnstreak.config.settings import Settings, get_settings
from learnstreak.core.clock import Clock, utcnow
from learnstreak.exceptions import ResourceNotFoundError
from learnstreak.progress.ledger import ProgressLedger

from .evaluator import calendar_day, get_streak_timezone, replay, running_streaks
from .models import TIER_ORDER, Offensive, OffensiveTier
from .schemas import (
    NextMilestones,
    OffensiveHistoryEntry,
    OffensiveStats,
    OffensiveSummaryResponse,
    OffensiveView,
    RebuildOffensiveResponse,
)
from .store import OffensiveStore
from .tiers import get_tier_classifier


logger = logging.getLogger(__name__)


class OffensiveService:
    """Summary and rebuild operations for a user's offensive."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        clock: Clock = utcnow,
        settings: Settings | None = None,
    ) -> None:
        self.session = session
        self.clock = clock
        self.settings = settings or get_settings()
        self.tz = get_streak_timezone()
        self.classifier = get_tier_classifier()
        self.ledger = ProgressLedger(session)
        self.store = OffensiveStore(session, tz=self.tz, classifier=self.classifier)

    def _is_alive(self, offensive: Offensive, today: date) -> bool:
        """A streak survives until a full calendar day passes without completions."""
        last_day = calendar_day(offensive.last_video_completed_at, self.tz)
        return (today - last_day).days <= 1

    async def get_summary(self, user_id: UUID, today: date | None = None) -> OffensiveSummaryResponse:
        """Current offensive, recent completion days, stats and next milestones.

        Read-only: a streak that has lapsed is reported with ``current_streak`` 0
        while the stored row keeps its last values until the next completion.
        """
        today = today or calendar_day(self.clock(), self.tz)
        offensive = await self.store.get(user_id)
        alive = offensive is not None and self._is_alive(offensive, today)

        timestamps = await self.ledger.completion_timestamps(user_id)
        runs = running_streaks(calendar_day(ts, self.tz) for ts in timestamps)

        window_start = today - timedelta(days=self.settings.OFFENSIVE_HISTORY_DAYS - 1)
        history = [
            OffensiveHistoryEntry(date=day, consecutive_days=run, tier=self.classifier.classify(run))
            for day, run in runs
            if window_start <= day <= today
        ]

        current_streak = offensive.consecutive_days if alive else 0
        longest_streak = max((run for _day, run in runs), default=0)
        if offensive is not None:
            longest_streak = max(longest_streak, offensive.consecutive_days)

        stats = OffensiveStats(
            total_offensives=offensive.total_offensives if offensive is not None else 0,
            current_streak=current_streak,
            longest_streak=longest_streak,
            current_tier=offensive.tier if alive else TIER_ORDER[0],
        )
        milestones = NextMilestones(
            days_to_super=self.classifier.days_until(OffensiveTier.SUPER, current_streak),
            days_to_ultra=self.classifier.days_until(OffensiveTier.ULTRA, current_streak),
            days_to_king=self.classifier.days_until(OffensiveTier.KING, current_streak),
            days_to_infinity=self.classifier.days_until(OffensiveTier.INFINITY, current_streak),
        )

        return OffensiveSummaryResponse(
            current_offensive=OffensiveView.from_model(offensive) if alive else None,
            history=history,
            stats=stats,
            next_milestones=milestones,
        )

    async def rebuild(self, user_id: UUID) -> RebuildOffensiveResponse:
        """Recompute the offensive by replaying every completion of the user.

        Used to repair the row after completions were recorded out of order.
        """
        try:
            timestamps = await self.ledger.completion_timestamps(user_id)
            state = replay(timestamps, tz=self.tz, classifier=self.classifier)
            if state is None:
                raise ResourceNotFoundError("Offensive", str(user_id))

            offensive, created = await self.store.overwrite(user_id, state)
            response = RebuildOffensiveResponse(
                offensive=OffensiveView.from_model(offensive),
                created=created,
                completion_days=len({calendar_day(ts, self.tz) for ts in timestamps}),
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Rebuilt offensive for user %s from %d completions: %d day(s), tier %s, %d offensive(s)",
            user_id,
            len(timestamps),
            state.consecutive_days,
            state.tier.value,
            state.total_offensives,
        )
        return response
