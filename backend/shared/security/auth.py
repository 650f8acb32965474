"""
Actor identity resolution.

The resource layer never authenticates: it only consumes the identifier of
the acting user, taken from the "sub" claim of a bearer JWT issued elsewhere.
Requests without a valid token are treated as anonymous.
"""

from __future__ import annotations

import time
import uuid
from typing import Any

import jwt
from fastapi import Header

from shared.config.settings import settings
from shared.config.logging import get_logger
from shared.infrastructure.correlation import bind_actor

logger = get_logger(__name__)


def sign_jwt(payload: dict[str, Any], ttl_seconds: int = 900) -> str:
    """
    Sign a JWT token with the given payload.

    Used by tests and tooling to mint tokens that `resolve_actor_id` accepts.
    """
    now = int(time.time())
    data = {
        **payload,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + ttl_seconds,
    }
    return jwt.encode(data, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def get_bearer_token(authorization: str | None) -> str | None:
    """
    Extract bearer token from Authorization header.

    Returns None when the header is missing or not a bearer header.
    """
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    return token or None


def resolve_actor_id(token: str | None) -> uuid.UUID | None:
    """
    Decode the token and parse its subject as a UUID.

    Returns None for missing, invalid or expired tokens and for subjects that
    are not UUIDs.
    """
    if token is None:
        return None

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except jwt.PyJWTError as e:
        logger.info("Ignoring unusable bearer token", reason=type(e).__name__)
        return None

    subject = payload.get("sub")
    if subject is None:
        return None

    try:
        return uuid.UUID(str(subject))
    except ValueError:
        logger.info("Token subject is not a UUID; request treated as anonymous")
        return None


async def current_actor_id(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> uuid.UUID | None:
    """
    FastAPI dependency returning the acting user's id, or None if anonymous.

    Usage:
        @router.post("")
        async def create(actor_id: uuid.UUID | None = Depends(current_actor_id)):
            ...
    """
    actor_id = resolve_actor_id(get_bearer_token(authorization))
    bind_actor(actor_id)
    return actor_id
