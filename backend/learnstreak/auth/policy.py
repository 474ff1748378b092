"""Authorization collaborator.

Access rules are evaluated elsewhere; routes only ask a ``PolicyChecker``
whether an action is allowed and turn a refusal into ``PermissionDeniedError``.
"""

import logging
from typing import Annotated, Protocol
from uuid import UUID

from fastapi import Depends

from learnstreak.exceptions import PermissionDeniedError


logger = logging.getLogger(__name__)


class PolicyChecker(Protocol):
    """Answers whether a user may perform an action on a subject."""

    async def allows(self, action: str, subject_type: str, subject_id: UUID | None, user_id: UUID) -> bool: ...


class AllowAllPolicy:
    """Default checker: every authenticated user may do everything."""

    async def allows(self, action: str, subject_type: str, subject_id: UUID | None, user_id: UUID) -> bool:
        return True


def get_policy_checker() -> PolicyChecker:
    """Dependency hook; override in the app to plug in a real rule engine."""
    return AllowAllPolicy()


async def require(
    checker: PolicyChecker,
    action: str,
    subject_type: str,
    subject_id: UUID | None,
    user_id: UUID,
) -> None:
    """Raise ``PermissionDeniedError`` unless ``checker`` allows the action."""
    if not await checker.allows(action, subject_type, subject_id, user_id):
        logger.warning("Policy denied %s on %s %s for user %s", action, subject_type, subject_id, user_id)
        raise PermissionDeniedError(action, subject_type)


Policy = Annotated[PolicyChecker, Depends(get_policy_checker)]
