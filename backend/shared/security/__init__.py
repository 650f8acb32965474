"""
Security module: actor identity from bearer tokens.
"""

from shared.security.auth import (
    sign_jwt,
    get_bearer_token,
    resolve_actor_id,
    current_actor_id,
)

__all__ = [
    "sign_jwt",
    "get_bearer_token",
    "resolve_actor_id",
    "current_actor_id",
]
