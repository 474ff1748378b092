"""AuthContext: the authenticated user id paired with the request session."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated
from uuid import UUID

from fastapi import Depends, Request

from learnstreak.auth.config import get_user_id
from learnstreak.auth.policy import Policy, PolicyChecker, require
from learnstreak.database.session import DbSession


if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


class AuthContext:
    """Request-scoped user context with a policy check helper."""

    def __init__(self, user_id: UUID, session: AsyncSession, policy: PolicyChecker) -> None:
        self.user_id = user_id
        self.session = session
        self.policy = policy

    async def authorize(self, action: str, subject_type: str, subject_id: UUID | None = None) -> None:
        """Raise ``PermissionDeniedError`` if the policy refuses the action."""
        await require(self.policy, action, subject_type, subject_id, self.user_id)


async def get_auth_context(
    request: Request,
    user_id: Annotated[UUID, Depends(get_user_id)],
    session: DbSession,
    policy: Policy,
) -> AuthContext:
    """Build an AuthContext for the current request.

    The resolved user id is also kept on ``request.state`` for error logging.
    """
    request.state.user_id = user_id
    return AuthContext(user_id=user_id, session=session, policy=policy)


CurrentAuth = Annotated[AuthContext, Depends(get_auth_context)]
