"""Progress Ledger access.

The unique (user_id, video_id) constraint is the primary defense against double
counting: completing a video goes through ``INSERT ... ON CONFLICT DO NOTHING``
and, when a row already exists, through a locked read of that row. Either way a
second completion of the same video surfaces as ``AlreadyCompletedError``.

Playback positions share the row: the first interaction creates it with
``is_completed = false`` and a later completion flips it exactly once.
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from learnstreak.catalog.facade import VideoRef
from learnstreak.core.clock import utcnow
from learnstreak.database.upsert import insert_if_absent
from learnstreak.exceptions import AlreadyCompletedError

from .models import VideoProgress


logger = logging.getLogger(__name__)


class ProgressLedger:
    """Reads and guarded writes on ``video_progress``; never commits on its own."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, user_id: UUID, video_id: UUID, *, for_update: bool = False) -> VideoProgress | None:
        stmt = select(VideoProgress).where(
            VideoProgress.user_id == user_id,
            VideoProgress.video_id == video_id,
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def mark_completed(self, user_id: UUID, video: VideoRef, completed_at: datetime) -> VideoProgress:
        """Record the completion once; raise ``AlreadyCompletedError`` otherwise."""
        inserted_id = await insert_if_absent(
            self.session,
            VideoProgress,
            {
                "user_id": user_id,
                "video_id": video.id,
                "sub_course_id": video.sub_course_id,
                "is_completed": True,
                "completed_at": completed_at,
            },
            ["user_id", "video_id"],
        )
        progress = await self.get(user_id, video.id, for_update=True)
        if progress is None:
            # Only reachable if the row vanished between insert and read (parent cascade)
            msg = f"Progress for user {user_id} and video {video.id} disappeared mid-transaction"
            raise RuntimeError(msg)
        if inserted_id is not None:
            return progress

        if progress.is_completed:
            raise AlreadyCompletedError(user_id, video.id)

        # Row created by an earlier interaction; completed_at is written exactly once here
        progress.is_completed = True
        progress.completed_at = completed_at
        await self.session.flush()
        return progress

    async def update_position(self, user_id: UUID, video: VideoRef, seconds: int) -> VideoProgress:
        """Store the playback position; completion fields are left as they are."""
        inserted_id = await insert_if_absent(
            self.session,
            VideoProgress,
            {
                "user_id": user_id,
                "video_id": video.id,
                "sub_course_id": video.sub_course_id,
                "is_completed": False,
                "current_timestamp": seconds,
            },
            ["user_id", "video_id"],
        )
        progress = await self.get(user_id, video.id, for_update=True)
        if progress is None:
            msg = f"Progress for user {user_id} and video {video.id} disappeared mid-transaction"
            raise RuntimeError(msg)
        if inserted_id is None:
            progress.current_timestamp = seconds
            # updated_at is the last-watched time, also for an unchanged position
            progress.updated_at = utcnow()
            await self.session.flush()
        return progress

    async def in_progress(self, user_id: UUID) -> list[VideoProgress]:
        """Started but not completed videos, most recently watched first."""
        result = await self.session.execute(
            select(VideoProgress)
            .where(
                VideoProgress.user_id == user_id,
                VideoProgress.is_completed.is_(False),
                VideoProgress.current_timestamp.is_not(None),
            )
            .order_by(VideoProgress.updated_at.desc())
        )
        return list(result.scalars().all())

    async def completion_timestamps(self, user_id: UUID, since: datetime | None = None) -> list[datetime]:
        """Completion times of the user, oldest first."""
        stmt = select(VideoProgress.completed_at).where(
            VideoProgress.user_id == user_id,
            VideoProgress.is_completed.is_(True),
            VideoProgress.completed_at.is_not(None),
        )
        if since is not None:
            stmt = stmt.where(VideoProgress.completed_at >= since)
        result = await self.session.execute(stmt.order_by(VideoProgress.completed_at))
        return list(result.scalars().all())

    async def count_completed(self, user_id: UUID, sub_course_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count(VideoProgress.id)).where(
                VideoProgress.user_id == user_id,
                VideoProgress.sub_course_id == sub_course_id,
                VideoProgress.is_completed.is_(True),
            )
        )
        return int(result.scalar_one())
