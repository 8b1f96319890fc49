"""Password hashing with bcrypt."""

from __future__ import annotations

import bcrypt

DEFAULT_COST = 10
_MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """Return a bcrypt hash of *password* at the default cost."""
    encoded = password.encode("utf-8")
    if len(encoded) > _MAX_PASSWORD_BYTES:
        raise ValueError("error hashing password: bcrypt: password length exceeds 72 bytes")
    salt = bcrypt.gensalt(rounds=DEFAULT_COST, prefix=b"2a")
    return bcrypt.hashpw(encoded, salt).decode("ascii")


def compare_hash_and_password(hashed_password: str, password: str) -> None:
    """Raise ValueError unless *password* matches *hashed_password*."""
    try:
        matched = bcrypt.checkpw(
            password.encode("utf-8")[:_MAX_PASSWORD_BYTES],
            hashed_password.encode("utf-8"),
        )
    except ValueError as exc:
        raise ValueError(f"crypto/bcrypt: {exc}") from exc
    if not matched:
        raise ValueError("crypto/bcrypt: hashedPassword is not the hash of the given password")