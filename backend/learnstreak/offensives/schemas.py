"""Schemas for the offensives API."""

from datetime import date as date_type, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from learnstreak.core.clock import as_utc

from .models import Offensive, OffensiveTier


class OffensiveView(BaseModel):
    """Persisted streak state of one user."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    tier: OffensiveTier
    consecutive_days: int
    last_video_completed_at: datetime
    streak_start_date: datetime
    total_offensives: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, offensive: Offensive) -> "OffensiveView":
        return cls(
            id=offensive.id,
            user_id=offensive.user_id,
            tier=offensive.tier,
            consecutive_days=offensive.consecutive_days,
            last_video_completed_at=as_utc(offensive.last_video_completed_at),
            streak_start_date=as_utc(offensive.streak_start_date),
            total_offensives=offensive.total_offensives,
            created_at=as_utc(offensive.created_at),
            updated_at=as_utc(offensive.updated_at),
        )


class OffensiveResult(BaseModel):
    """What a completion did to the streak."""

    offensive: OffensiveView
    is_new_offensive: bool
    is_streak_broken: bool
    message: str


class OffensiveHistoryEntry(BaseModel):
    """A calendar day with at least one completion and the tier reached that day."""

    date: date_type
    has_offensive: bool = True
    consecutive_days: int
    tier: OffensiveTier


class OffensiveStats(BaseModel):
    total_offensives: int
    current_streak: int
    longest_streak: int
    current_tier: OffensiveTier


class NextMilestones(BaseModel):
    days_to_super: int
    days_to_ultra: int
    days_to_king: int
    days_to_infinity: int


class OffensiveSummaryResponse(BaseModel):
    """Current streak, recent history and milestones for display."""

    current_offensive: OffensiveView | None
    history: list[OffensiveHistoryEntry]
    stats: OffensiveStats
    next_milestones: NextMilestones


class RebuildOffensiveResponse(BaseModel):
    offensive: OffensiveView
    created: bool
    completion_days: int
