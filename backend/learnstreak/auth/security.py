"""JWT primitives for bearer-token auth."""

from __future__ import annotations

import hashlib
import hmac
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import jwt

from learnstreak.auth.exceptions import InvalidTokenError, TokenExpiredError
from learnstreak.config.settings import get_settings


ALGORITHM = "HS256"
_JWT_KEY_PURPOSE = "jwt"


def _derive_secret_key(secret_key: str, purpose: str) -> str:
    """Derive deterministic sub-keys for auth contexts from a shared secret."""
    return hmac.new(secret_key.encode("utf-8"), purpose.encode("utf-8"), hashlib.sha256).hexdigest()


def get_jwt_signing_key() -> str:
    """Return JWT signing key derived from AUTH_SECRET_KEY."""
    secret_key = get_settings().AUTH_SECRET_KEY.get_secret_value()
    return _derive_secret_key(secret_key, _JWT_KEY_PURPOSE)


def create_access_token(subject: str | Any, expires_delta: timedelta = timedelta(hours=1)) -> str:
    """Create a signed access token whose ``sub`` is the user id."""
    now = datetime.now(UTC)
    to_encode = {"exp": now + expires_delta, "iat": now, "nbf": now, "sub": str(subject)}
    return jwt.encode(to_encode, get_jwt_signing_key(), algorithm=ALGORITHM)


def decode_access_token(token: str) -> UUID:
    """Validate a token and return the user id it was issued for."""
    try:
        payload = jwt.decode(
            token,
            get_jwt_signing_key(),
            algorithms=[ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError from e
    except jwt.InvalidTokenError as e:
        raise InvalidTokenError from e

    try:
        return UUID(payload["sub"])
    except (TypeError, ValueError) as e:
        raise InvalidTokenError from e
