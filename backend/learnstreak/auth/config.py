"""Auth configuration - resolves the current user id for a request."""

import logging
from uuid import UUID

from fastapi import Request

from learnstreak.auth.exceptions import MissingTokenError, UnknownAuthProviderError
from learnstreak.auth.security import decode_access_token
from learnstreak.config.settings import get_settings


logger = logging.getLogger(__name__)

# Single-user mode identity
DEFAULT_USER_ID = UUID("00000000-0000-0000-0000-000000000001")


def _extract_token_from_request(request: Request) -> str | None:
    """Extract JWT token from the Authorization header."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header.removeprefix("Bearer ").strip() or None
    return None


async def get_user_id(request: Request) -> UUID:
    """Resolve the user id of a request.

    Single-user mode: always DEFAULT_USER_ID.
    JWT mode: validates the bearer token or rejects the request.
    """
    settings = get_settings()
    provider = settings.AUTH_PROVIDER.lower()

    if provider == "none":
        if settings.ENVIRONMENT == "production":
            logger.error("AUTH_PROVIDER='none' is not allowed in production!")
            error_msg = "Single-user mode (AUTH_PROVIDER='none') is not allowed in production. Use JWT authentication."
            raise ValueError(error_msg)
        return DEFAULT_USER_ID

    if provider == "jwt":
        token = _extract_token_from_request(request)
        if not token:
            logger.warning("Missing or malformed Authorization header")
            raise MissingTokenError
        return decode_access_token(token)

    logger.error("Unknown auth provider: %s", settings.AUTH_PROVIDER)
    raise UnknownAuthProviderError(settings.AUTH_PROVIDER)
