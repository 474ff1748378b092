"""Read-only view of the catalog owned by other services (users, sub-courses, videos)."""

from learnstreak.catalog.facade import CatalogFacade, VideoRef
from learnstreak.catalog.models import SubCourse, User, Video


__all__ = ["CatalogFacade", "SubCourse", "User", "Video", "VideoRef"]
