"""Streak evaluation: pure calendar-day decisions, no I/O.

Given the previous streak state (or none) and the timestamp of a new completion,
``evaluate`` decides whether the run continues, stays on the same day or is
reset, and returns the next state with the flags callers report back.
"""

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime, time, timedelta
from functools import lru_cache
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from learnstreak.config.settings import get_settings
from learnstreak.core.clock import as_utc
from learnstreak.exceptions import InvalidTimestampError, ValidationError

from .models import OffensiveTier
from .tiers import TierClassifier, get_tier_classifier


if TYPE_CHECKING:
    from .models import Offensive


# === Calendar helpers ===


@lru_cache
def get_streak_timezone(name: str | None = None) -> ZoneInfo:
    """Reference zone used to cut timestamps into calendar days."""
    zone_name = name or get_settings().STREAK_TIMEZONE
    try:
        return ZoneInfo(zone_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        msg = f"Unknown streak time zone: {zone_name!r}"
        raise ValidationError(msg) from e


def calendar_day(value: datetime, tz: ZoneInfo) -> date:
    """Truncate a timestamp to its date in the reference zone."""
    return as_utc(value).astimezone(tz).date()


def start_of_day(day: date, tz: ZoneInfo) -> datetime:
    """First instant of ``day`` in the reference zone, as aware UTC."""
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(UTC)


def running_streaks(days: Iterable[date]) -> list[tuple[date, int]]:
    """Pair each distinct day with the length of the run ending on it."""
    result: list[tuple[date, int]] = []
    previous: date | None = None
    run = 0
    for day in sorted(set(days)):
        run = run + 1 if previous is not None and day - previous == timedelta(days=1) else 1
        result.append((day, run))
        previous = day
    return result


# === State ===


@dataclass(frozen=True)
class OffensiveState:
    """Streak values the evaluator reads and produces."""

    tier: OffensiveTier
    consecutive_days: int
    last_video_completed_at: datetime
    streak_start_date: datetime
    total_offensives: int

    @classmethod
    def from_model(cls, offensive: "Offensive") -> "OffensiveState":
        return cls(
            tier=offensive.tier,
            consecutive_days=offensive.consecutive_days,
            last_video_completed_at=as_utc(offensive.last_video_completed_at),
            streak_start_date=as_utc(offensive.streak_start_date),
            total_offensives=offensive.total_offensives,
        )


@dataclass(frozen=True)
class Evaluation:
    """Outcome of applying one completion to a streak."""

    state: OffensiveState
    is_new_offensive: bool
    is_streak_broken: bool
    changed: bool
    day_delta: int | None
    message: str


# === Messages ===

_TIER_MESSAGES = {
    OffensiveTier.NORMAL: "Offensive earned! {days} day(s) in a row.",
    OffensiveTier.SUPER: "SUPER offensive! {days} consecutive days!",
    OffensiveTier.ULTRA: "ULTRA offensive! {days} consecutive days!",
    OffensiveTier.KING: "KING offensive! {days} consecutive days!",
    OffensiveTier.INFINITY: "INFINITY offensive! {days} consecutive days!",
}

FIRST_OFFENSIVE_MESSAGE = "First offensive earned! Keep it going!"
STREAK_BROKEN_MESSAGE = "Streak broken! A new offensive has started."
SAME_DAY_MESSAGE = "You already earned today's offensive!"


def offensive_message(state: OffensiveState, *, is_new_offensive: bool, is_streak_broken: bool) -> str:
    if is_streak_broken:
        return STREAK_BROKEN_MESSAGE
    if is_new_offensive:
        return FIRST_OFFENSIVE_MESSAGE
    return _TIER_MESSAGES[state.tier].format(days=state.consecutive_days)


# === Decision ===


def evaluate(
    previous: OffensiveState | None,
    event_at: datetime,
    *,
    tz: ZoneInfo | None = None,
    classifier: TierClassifier | None = None,
) -> Evaluation:
    """Apply one completion at ``event_at`` to the ``previous`` streak state.

    Decision by day delta (event day minus the day of the stored anchor):

    - no previous state: run #1 starts with one day
    - 0: same day, counts stay; the anchor only moves forward in time
    - 1: next day, the run grows by one
    - 2 or more: at least one day was skipped, a new run starts
    - negative: the event predates the anchor and is rejected
    """
    tz = tz or get_streak_timezone()
    classifier = classifier or get_tier_classifier()
    event_at = as_utc(event_at)
    event_day = calendar_day(event_at, tz)

    if previous is None:
        state = OffensiveState(
            tier=classifier.classify(1),
            consecutive_days=1,
            last_video_completed_at=event_at,
            streak_start_date=start_of_day(event_day, tz),
            total_offensives=1,
        )
        return Evaluation(
            state=state,
            is_new_offensive=True,
            is_streak_broken=False,
            changed=True,
            day_delta=None,
            message=offensive_message(state, is_new_offensive=True, is_streak_broken=False),
        )

    anchor_day = calendar_day(previous.last_video_completed_at, tz)
    delta = (event_day - anchor_day).days

    if delta < 0:
        msg = (
            f"Completion on {event_day.isoformat()} precedes the last counted day "
            f"{anchor_day.isoformat()} of the current offensive"
        )
        raise InvalidTimestampError(msg)

    if delta == 0:
        # Monotonic anchor: a later completion on the same day moves it forward
        if event_at > previous.last_video_completed_at:
            return Evaluation(
                state=replace(previous, last_video_completed_at=event_at),
                is_new_offensive=False,
                is_streak_broken=False,
                changed=True,
                day_delta=0,
                message=SAME_DAY_MESSAGE,
            )
        return Evaluation(
            state=previous,
            is_new_offensive=False,
            is_streak_broken=False,
            changed=False,
            day_delta=0,
            message=SAME_DAY_MESSAGE,
        )

    if delta == 1:
        consecutive_days = previous.consecutive_days + 1
        state = replace(
            previous,
            tier=classifier.classify(consecutive_days),
            consecutive_days=consecutive_days,
            last_video_completed_at=event_at,
        )
        return Evaluation(
            state=state,
            is_new_offensive=False,
            is_streak_broken=False,
            changed=True,
            day_delta=1,
            message=offensive_message(state, is_new_offensive=False, is_streak_broken=False),
        )

    state = OffensiveState(
        tier=classifier.classify(1),
        consecutive_days=1,
        last_video_completed_at=event_at,
        streak_start_date=start_of_day(event_day, tz),
        total_offensives=previous.total_offensives + 1,
    )
    return Evaluation(
        state=state,
        is_new_offensive=False,
        is_streak_broken=True,
        changed=True,
        day_delta=delta,
        message=offensive_message(state, is_new_offensive=False, is_streak_broken=True),
    )


def replay(
    completions: Iterable[datetime],
    *,
    tz: ZoneInfo | None = None,
    classifier: TierClassifier | None = None,
) -> OffensiveState | None:
    """Fold a user's completion timestamps, oldest first, into a streak state."""
    state: OffensiveState | None = None
    for completed_at in sorted(as_utc(ts) for ts in completions):
        state = evaluate(state, completed_at, tz=tz, classifier=classifier).state
    return state
