"""Request guards: session authentication and role checks."""

from __future__ import annotations

import functools
from collections.abc import Callable, Iterable
from typing import Any

import jwt
import redis
from bson import ObjectId
from bson.errors import InvalidId
from flask import g, jsonify, request

from .cache import RedisCache
from .config import Config
from .models import User
from .tokens import decode_token

View = Callable[..., Any]


def _fail(status: int, message: str) -> tuple[Any, int]:
    return jsonify({"status": "fail", "message": message}), status


def deserialize_user(cache: RedisCache, users: Any, config: Config) -> Callable[[View], View]:
    """Build a decorator that loads the session's user into ``g.user``.

    The session is found by the ``session_id`` cookie; its refresh token must
    verify and name an existing user, or the request is refused.
    """

    def decorator(view: View) -> View:
        @functools.wraps(view)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            session_id = request.cookies.get("session_id", "")
            try:
                cached = cache.get_refresh_token(session_id)
            except (ValueError, redis.RedisError):
                cached = None
            if cached is None:
                return _fail(401, "Invalid or expired session")

            if not session_id:
                return _fail(401, "Refresh token is missing")

            try:
                claims = decode_token(cached.refresh_token, config.refresh_jwt_secret)
            except jwt.InvalidTokenError:
                return _fail(401, "Invalid or expired refresh token")

            if not isinstance(claims, dict) or claims.get("sub") is None:
                return _fail(401, "Invalid refresh token claims")

            try:
                object_id = ObjectId(str(claims["sub"]))
            except (InvalidId, TypeError):
                return _fail(401, "Invalid token subject")

            document = users.find_one({"_id": object_id})
            if document is None:
                return _fail(403, "User not found")

            g.user = User.from_document(document)
            return view(*args, **kwargs)

        return wrapper

    return decorator


def allowed_roles(roles: Iterable[str]) -> Callable[[View], View]:
    """Build a decorator that admits only users whose role is in *roles*."""
    permitted = frozenset(roles)

    def decorator(view: View) -> View:
        @functools.wraps(view)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            user = g.get("user")
            if not isinstance(user, User):
                return _fail(401, "Access denied. User not authenticated")
            if user.role not in permitted:
                return _fail(403, "Access denied. You are not allowed to perform this action")
            return view(*args, **kwargs)

        return wrapper

    return decorator