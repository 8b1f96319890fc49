"""Signed JSON Web Tokens for access and refresh."""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from bson import ObjectId

_HMAC_ALGORITHMS = ["HS256", "HS384", "HS512"]


def _subject(user_id: Any) -> Any:
    if isinstance(user_id, ObjectId):
        return str(user_id)
    return user_id


def generate_token(ttl: timedelta, user_id: Any, private_key: str) -> str:
    """Sign an HS256 token for *user_id* that expires after *ttl*."""
    now = datetime.now(timezone.utc)
    issued = math.floor(now.timestamp())
    claims = {
        "exp": math.floor((now + ttl).timestamp()),
        "iat": issued,
        "nbf": issued,
        "sub": _subject(user_id),
    }
    return jwt.encode(claims, private_key, algorithm="HS256")


def decode_token(token: str, secret: str) -> dict[str, Any]:
    """Verify an HMAC-signed token and return its claims.

    Raises ``jwt.InvalidTokenError`` (or a subclass) if the token is malformed,
    signed with another key or algorithm, expired or not yet valid.
    """
    return jwt.decode(token, secret, algorithms=_HMAC_ALGORITHMS)