"""Catalog lookups used by the completion intake.

Single entry point for the read-only questions the engine asks the catalog:
does this user exist, does this video exist, which sub-course owns it and how
long it runs.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from learnstreak.exceptions import ResourceNotFoundError

from .models import SubCourse, User, Video


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VideoRef:
    """Minimal identity of a catalog video."""

    id: UUID
    sub_course_id: UUID


@dataclass(frozen=True)
class VideoDetails:
    """Catalog fields shown next to a user's playback position."""

    id: UUID
    sub_course_id: UUID
    title: str
    duration: int | None


class CatalogFacade:
    """Read-only catalog access bound to a request session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def user_exists(self, user_id: UUID) -> bool:
        result = await self.session.execute(select(User.id).where(User.id == user_id))
        return result.first() is not None

    async def require_user(self, user_id: UUID) -> None:
        if not await self.user_exists(user_id):
            raise ResourceNotFoundError("User", str(user_id))

    async def get_video(self, video_id: UUID) -> VideoRef | None:
        result = await self.session.execute(select(Video.id, Video.sub_course_id).where(Video.id == video_id))
        row = result.first()
        if row is None:
            return None
        return VideoRef(id=row.id, sub_course_id=row.sub_course_id)

    async def require_video(self, video_id: UUID) -> VideoRef:
        video = await self.get_video(video_id)
        if video is None:
            raise ResourceNotFoundError("Video", str(video_id))
        return video

    async def get_sub_course_name(self, sub_course_id: UUID) -> str | None:
        result = await self.session.execute(select(SubCourse.name).where(SubCourse.id == sub_course_id))
        return result.scalar_one_or_none()

    async def count_videos(self, sub_course_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count(Video.id)).where(Video.sub_course_id == sub_course_id)
        )
        return int(result.scalar_one())

    async def get_video_details(self, video_ids: list[UUID]) -> dict[UUID, VideoDetails]:
        if not video_ids:
            return {}
        result = await self.session.execute(
            select(Video.id, Video.sub_course_id, Video.title, Video.duration).where(Video.id.in_(video_ids))
        )
        return {
            row.id: VideoDetails(id=row.id, sub_course_id=row.sub_course_id, title=row.title, duration=row.duration)
            for row in result
        }
