"""Completion intake, playback positions and progress reads."""

import logging
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from learnstreak.catalog.facade import CatalogFacade
from learnstreak.config.settings import Settings, get_settings
from learnstreak.core.clock import Clock, as_utc, utcnow
from learnstreak.exceptions import AlreadyCompletedError, InvalidTimestampError, ResourceNotFoundError, ValidationError
from learnstreak.offensives.schemas import OffensiveResult, OffensiveView
from learnstreak.offensives.store import OffensiveStore

from .ledger import ProgressLedger
from .schemas import (
    CompleteVideoResponse,
    CourseProgressResponse,
    InProgressVideo,
    InProgressVideosResponse,
    VideoProgressView,
)


logger = logging.getLogger(__name__)


class CompletionService:
    """Turns a video completion into one atomic ledger + streak update."""

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
        self.catalog = CatalogFacade(session)
        self.ledger = ProgressLedger(session)
        self.store = OffensiveStore(session)

    def resolve_timestamp(self, completed_at: datetime | None) -> datetime:
        """Return the timestamp to record, validating a caller-supplied one."""
        now = as_utc(self.clock())
        if completed_at is None:
            return now

        if not self.settings.simulated_completions_allowed:
            msg = "Simulated completion timestamps are disabled in this environment"
            raise ValidationError(msg)

        completed_at = as_utc(completed_at)
        max_skew = timedelta(seconds=self.settings.COMPLETION_MAX_FUTURE_SKEW_SECONDS)
        if completed_at > now + max_skew:
            msg = f"Completion timestamp {completed_at.isoformat()} is in the future"
            raise InvalidTimestampError(msg)
        return completed_at

    async def record_completion(
        self,
        user_id: UUID,
        video_id: UUID,
        completed_at: datetime | None = None,
    ) -> CompleteVideoResponse:
        """Mark a video completed and advance the user's offensive.

        Everything happens in the session's transaction: the progress row, the
        locked offensive read and its upsert either commit together or not at all.

        Raises
        ------
            ResourceNotFoundError: unknown user or video
            AlreadyCompletedError: the video was completed before
            InvalidTimestampError: future timestamp, or one before the last counted day
            ValidationError: simulated timestamp supplied while disabled
        """
        event_at = self.resolve_timestamp(completed_at)
        simulated = completed_at is not None

        try:
            await self.catalog.require_user(user_id)
            video = await self.catalog.require_video(video_id)

            progress = await self.ledger.mark_completed(user_id, video, event_at)
            offensive, evaluation = await self.store.apply_completion(user_id, event_at)

            # Serialize before commit so the views reflect the flushed state
            response = CompleteVideoResponse(
                progress=VideoProgressView.from_model(progress),
                offensive_result=OffensiveResult(
                    offensive=OffensiveView.from_model(offensive),
                    is_new_offensive=evaluation.is_new_offensive,
                    is_streak_broken=evaluation.is_streak_broken,
                    message=evaluation.message,
                ),
            )
            await self.session.commit()
        except AlreadyCompletedError as e:
            await self._attach_current_state(e)
            await self.session.rollback()
            logger.warning("Rejected repeated completion of video %s by user %s", video_id, user_id)
            raise
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "User %s completed video %s%s: %s day(s), tier %s%s",
            user_id,
            video_id,
            " (simulated)" if simulated else "",
            evaluation.state.consecutive_days,
            evaluation.state.tier.value,
            ", streak broken" if evaluation.is_streak_broken else "",
        )
        return response

    async def _attach_current_state(self, error: AlreadyCompletedError) -> None:
        progress = await self.ledger.get(error.user_id, error.video_id)
        if progress is not None:
            error.progress = VideoProgressView.from_model(progress).model_dump(mode="json")
        offensive = await self.store.get(error.user_id)
        if offensive is not None:
            error.offensive = OffensiveView.from_model(offensive).model_dump(mode="json")

    async def get_video_progress(self, user_id: UUID, video_id: UUID) -> VideoProgressView:
        """Progress on one video; a not-completed view when nothing was recorded."""
        progress = await self.ledger.get(user_id, video_id)
        if progress is not None:
            return VideoProgressView.from_model(progress)

        video = await self.catalog.require_video(video_id)
        return VideoProgressView(user_id=user_id, video_id=video.id, sub_course_id=video.sub_course_id)

    async def get_course_progress(self, user_id: UUID, sub_course_id: UUID) -> CourseProgressResponse:
        """Completed-video counts for a sub-course."""
        name = await self.catalog.get_sub_course_name(sub_course_id)
        if name is None:
            raise ResourceNotFoundError("SubCourse", str(sub_course_id))

        total = await self.catalog.count_videos(sub_course_id)
        completed = await self.ledger.count_completed(user_id, sub_course_id)
        percentage = (completed * 100) // total if total else 0

        return CourseProgressResponse(
            sub_course_id=sub_course_id,
            sub_course_name=name,
            total_videos=total,
            completed_videos=completed,
            progress_percentage=percentage,
            is_completed=total > 0 and completed >= total,
        )


class PlaybackService:
    """Playback positions. Never completes a video and never touches the offensive."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.catalog = CatalogFacade(session)
        self.ledger = ProgressLedger(session)

    async def update_position(self, user_id: UUID, video_id: UUID, seconds: int) -> VideoProgressView:
        """Record where the user is in a video, creating the progress row on first interaction."""
        try:
            await self.catalog.require_user(user_id)
            video = await self.catalog.require_video(video_id)
            progress = await self.ledger.update_position(user_id, video, seconds)
            view = VideoProgressView.from_model(progress)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.debug("User %s is at %ss of video %s", user_id, seconds, video_id)
        return view

    async def get_in_progress_videos(self, user_id: UUID) -> InProgressVideosResponse:
        rows = await self.ledger.in_progress(user_id)
        details = await self.catalog.get_video_details([row.video_id for row in rows])

        videos = []
        for row in rows:
            video = details.get(row.video_id)
            if video is None:
                continue
            position = row.current_timestamp or 0
            percentage = min(100, (position * 100) // video.duration) if video.duration and video.duration > 0 else 0
            videos.append(
                InProgressVideo(
                    video_id=video.id,
                    title=video.title,
                    sub_course_id=video.sub_course_id,
                    current_timestamp=position,
                    duration=video.duration,
                    progress_percentage=percentage,
                    last_watched_at=as_utc(row.updated_at),
                )
            )
        return InProgressVideosResponse(videos=videos)
