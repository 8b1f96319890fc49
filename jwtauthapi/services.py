"""Sign-up and sign-in logic."""

from __future__ import annotations

import uuid
from typing import Any

from bson import ObjectId

from .cache import CacheValue, RedisCache
from .config import Config
from .models import SignInInput, SignUpInput, Tokens, User
from .passwords import compare_hash_and_password, hash_password
from .repository import AuthRepository, UserNotFoundError
from .tokens import generate_token


class InvalidCredentialsError(Exception):
    """The e-mail is unknown or the password does not match."""

    def __init__(self, message: str = "invalid email or password") -> None:
        super().__init__(message)


class AuthService:
    """Registers users and issues their tokens."""

    def __init__(self, repo: AuthRepository, cache: RedisCache, config: Config) -> None:
        self.repo = repo
        self.cache = cache
        self.config = config

    def sign_up_user(self, payload: SignUpInput) -> User:
        """Create a user from the payload with a hashed password."""
        new_user = User(
            id=ObjectId(),
            name=payload.name,
            email=payload.email.lower(),
            password=hash_password(payload.password),
            photo=payload.photo,
        )
        return self.repo.sign_up_user(new_user)

    def sign_in_user(self, payload: SignInInput, session_id: str = "") -> Tokens:
        """Check the credentials and return an access token and a session.

        A known *session_id* keeps its refresh token; otherwise a new session
        is opened and its refresh token stored in the cache.
        """
        try:
            user: Any = self.repo.sign_in_user(payload)
        except UserNotFoundError:
            raise InvalidCredentialsError() from None

        try:
            compare_hash_and_password(user.password, payload.password)
        except ValueError:
            raise InvalidCredentialsError() from None

        config = self.config
        access_token = generate_token(config.access_jwt_expires_in, user.id, config.access_jwt_secret)

        if session_id:
            existing = self.cache.get_refresh_token(session_id)
            if existing is not None:
                return Tokens(
                    session_id=session_id,
                    access_token=access_token,
                    refresh_token=existing.refresh_token,
                )

        refresh_token = generate_token(
            config.refresh_jwt_expires_in, user.id, config.refresh_jwt_secret
        )
        new_session_id = str(uuid.uuid4())
        value = CacheValue(user_id=str(user.id), refresh_token=refresh_token)
        self.cache.save_refresh_token(new_session_id, value, config.refresh_jwt_expires_in)
        return Tokens(
            session_id=new_session_id,
            access_token=access_token,
            refresh_token=refresh_token,
        )