"""HTTP handlers for sign-up, sign-in, sessions and user listings."""

from __future__ import annotations

import json
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
import redis
from flask import Response, g, jsonify, request
from pymongo.errors import PyMongoError

from .cache import CacheValue, RedisCache
from .config import Config
from .models import SignInInput, SignUpInput, User, filtered_user_response
from .services import AuthService, InvalidCredentialsError
from .tokens import generate_token
from .validation import validate_struct

_INT_RE = re.compile(r"[+-]?\d+")
_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")
_SERVICE_ERRORS = (
    InvalidCredentialsError,
    ValueError,
    redis.RedisError,
    PyMongoError,
    jwt.PyJWTError,
)


def _atoi(text: str) -> int:
    """Parse a decimal integer strictly; anything else counts as zero."""
    return int(text) if _INT_RE.fullmatch(text) else 0


def _parse_body(cls: type) -> Any:
    if request.is_json:
        data = json.loads(request.get_data(as_text=True))
    elif request.mimetype in _FORM_TYPES:
        data = request.form.to_dict()
    else:
        raise ValueError("Unprocessable Entity")
    return cls.from_dict(data)


def _fail(status: int, message: str, key: str = "status") -> tuple[Response, int]:
    return jsonify({key: "fail", "message": message}), status


def _set_cookie(response: Response, name: str, value: str, max_age: int) -> None:
    response.set_cookie(
        name,
        value,
        max_age=max_age or None,
        path="/",
        secure=False,
        httponly=True,
    )


def _clear_cookie(response: Response, name: str) -> None:
    response.set_cookie(
        name,
        "",
        expires=datetime.now(timezone.utc) - timedelta(hours=24),
        httponly=True,
    )


class AuthController:
    """Request handlers bound to the auth service, session cache and user store."""

    def __init__(self, service: AuthService, cache: RedisCache, users: Any, config: Config) -> None:
        self.service = service
        self.cache = cache
        self.users = users
        self.config = config

    def sign_up_user(self) -> Any:
        """Register a user from the request body."""
        try:
            payload = _parse_body(SignUpInput)
        except ValueError as exc:
            return _fail(400, str(exc), key="stattus")

        errors = validate_struct(payload)
        if errors:
            return jsonify({"status": "fail", "errors": [e.to_dict() for e in errors]}), 400

        try:
            user = self.service.sign_up_user(payload)
        except _SERVICE_ERRORS as exc:
            return Response(f"error creating user: {exc}", status=500, mimetype="text/plain")

        return jsonify({"status": "success", "user": filtered_user_response(user).to_dict()}), 200

    def sign_in_user(self) -> Any:
        """Check credentials, then issue tokens and session cookies."""
        try:
            payload = _parse_body(SignInInput)
        except ValueError as exc:
            return _fail(400, str(exc), key="stattus")

        errors = validate_struct(payload)
        if errors:
            return jsonify({"status": "fail", "errors": [e.to_dict() for e in errors]}), 400

        try:
            tokens = self.service.sign_in_user(payload, request.cookies.get("session_id", ""))
        except _SERVICE_ERRORS as exc:
            return _fail(502, f"generating JWT Token failed: {exc}")

        max_age = self.config.access_jwt_max_age * 60
        response = jsonify(
            {
                "status": "success",
                "access_token": tokens.access_token,
                "refresh_token": tokens.refresh_token,
            }
        )
        _set_cookie(response, "access_token", tokens.access_token, max_age)
        _set_cookie(response, "session_id", tokens.session_id, max_age)
        response.status_code = 200
        return response

    def refresh_token(self) -> Any:
        """Rotate the session: new tokens, a new session id, the old one dropped."""
        user: User = g.user
        config = self.config

        current_session_id = request.cookies.get("session_id", "")
        if not current_session_id:
            return _fail(400, "session_id cookie is missing or empty")

        error: Any = None
        try:
            cached = self.cache.get_refresh_token(current_session_id)
        except (ValueError, redis.RedisError) as exc:
            cached, error = None, exc
        if cached is None:
            return _fail(502, f"getting refresh token from cache failed: {error}")

        user_id = str(user.id)
        try:
            access_token = generate_token(
                config.access_jwt_expires_in, user_id, config.access_jwt_secret
            )
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            return _fail(502, f"generating access token failed: {exc}")
        try:
            refresh_token = generate_token(
                config.refresh_jwt_expires_in, user_id, config.refresh_jwt_secret
            )
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            return _fail(502, f"generating refresh token failed: {exc}")

        try:
            self.cache.delete_refresh_token(current_session_id)
        except redis.RedisError:
            pass
        session_id = str(uuid.uuid4())
        value = CacheValue(user_id=user_id, refresh_token=refresh_token)
        try:
            self.cache.save_refresh_token(
                session_id, value, timedelta(hours=config.refresh_jwt_max_age)
            )
        except redis.RedisError as exc:
            return _fail(502, f"saving refresh token to cache failed: {exc}")

        response = jsonify(
            {"status": "success", "access_token": access_token, "refresh_token": refresh_token}
        )
        _set_cookie(response, "access_token", access_token, config.access_jwt_max_age * 60)
        _set_cookie(response, "session_id", session_id, config.refresh_jwt_max_age * 60)
        response.status_code = 200
        return response

    def log_out_user(self) -> Any:
        """Drop the session and expire the cookies."""
        session_id = request.cookies.get("session_id", "")
        if session_id:
            try:
                self.cache.delete_refresh_token(session_id)
            except redis.RedisError:
                pass
        response = jsonify({"status": "success"})
        _clear_cookie(response, "access_token")
        _clear_cookie(response, "session_id")
        response.status_code = 200
        return response

    def get_me_handler(self) -> Any:
        """Return the signed-in user."""
        user: User = g.user
        return jsonify({"status": "success", "user": filtered_user_response(user).to_dict()}), 200

    def get_users_handler(self) -> Any:
        """Return one page of users, chosen by the ``page`` and ``limit`` queries."""
        page = _atoi(request.args.get("page") or "1")
        limit = _atoi(request.args.get("limit") or "10")
        skip = (page - 1) * limit

        try:
            cursor = self.users.find({}, skip=skip, limit=limit)
        except (PyMongoError, ValueError, TypeError):
            return jsonify({"status": "error", "message": "Failed to fetch users"}), 500

        try:
            documents = list(cursor)
        except PyMongoError:
            return jsonify({"status": "error", "message": "Failed to parse users"}), 500

        responses = [
            filtered_user_response(User.from_document(document)).to_dict()
            for document in documents
        ]
        return (
            jsonify(
                {
                    "status": "success",
                    "results": len(responses),
                    "users": responses or None,
                }
            ),
            200,
        )