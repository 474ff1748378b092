from typing import Any


class DomainError(Exception):
    """Base exception class for all domain-specific exceptions."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class ResourceNotFoundError(DomainError):
    """Exception raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type} with ID {resource_id} not found"
        super().__init__(message)


class ValidationError(DomainError):
    """Exception raised when validation fails."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class InvalidTimestampError(DomainError):
    """A completion timestamp cannot be applied to the stored streak.

    Raised for timestamps in the future and for timestamps whose calendar day
    precedes the day the streak was last counted on.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)


class AlreadyCompletedError(DomainError):
    """The video was already completed by this user.

    Carries the current, unchanged state so callers can render "already done"
    without a second round trip.
    """

    def __init__(
        self,
        user_id: Any,
        video_id: Any,
        *,
        progress: dict[str, Any] | None = None,
        offensive: dict[str, Any] | None = None,
    ) -> None:
        self.user_id = user_id
        self.video_id = video_id
        self.progress = progress
        self.offensive = offensive
        super().__init__(f"Video {video_id} was already completed by user {user_id}")


class PermissionDeniedError(DomainError):
    """The injected policy collaborator refused the action."""

    def __init__(self, action: str, subject_type: str) -> None:
        self.action = action
        self.subject_type = subject_type
        super().__init__(f"Not allowed to {action} {subject_type}")


class ConcurrentUpdateError(DomainError):
    """A competing transaction kept winning the race for the same row.

    Nothing was committed; the whole operation is safe to retry.
    """

    def __init__(self, resource_type: str, resource_id: str, attempts: int) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.attempts = attempts
        super().__init__(f"Could not update {resource_type} {resource_id} after {attempts} attempts")
