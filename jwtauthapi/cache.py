"""Redis-backed key/value cache and refresh-token sessions."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

import redis

REFRESH_PREFIX = "refresh_token:"
_DEFAULT_ADDR = "localhost:6379"


@dataclass(frozen=True)
class CacheValue:
    """What is stored for one session."""

    user_id: str = ""
    refresh_token: str = ""

    def to_json(self) -> str:
        """Return the compact JSON form stored in Redis."""
        return json.dumps(
            {"user_id": self.user_id, "refresh_token": self.refresh_token},
            separators=(",", ":"),
            ensure_ascii=False,
        )

    @classmethod
    def from_json(cls, data: str | bytes) -> CacheValue:
        """Parse a stored value, raising ValueError if it is malformed."""
        try:
            decoded = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ValueError(f"failed to unmarshal cache value: {exc}") from exc
        if not isinstance(decoded, dict):
            raise ValueError("failed to unmarshal cache value: not a JSON object")
        values: dict[str, str] = {}
        for key in ("user_id", "refresh_token"):
            value = decoded.get(key)
            if value is None:
                continue
            if not isinstance(value, str):
                raise ValueError(f"failed to unmarshal cache value: {key} is not a string")
            values[key] = value
        return cls(**values)


def _expiry(expiration: timedelta | None) -> dict[str, int]:
    if expiration is None or expiration <= timedelta(0):
        return {}
    microseconds = expiration // timedelta(microseconds=1)
    if microseconds % 1_000_000 == 0:
        return {"ex": microseconds // 1_000_000}
    return {"px": max(microseconds // 1000, 1)}


def _encode(value: Any) -> str | bytes | int | float:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (str, bytes, int, float)):
        return value
    raise TypeError(f"can't store a value of type {type(value).__name__}")


class RedisCache:
    """A thin cache over a Redis client."""

    def __init__(self, client: Any) -> None:
        self.client = client

    def set(self, key: str, value: Any, expiration: timedelta | None = None) -> None:
        """Store *value*; a missing or non-positive *expiration* keeps it forever."""
        self.client.set(key, _encode(value), **_expiry(expiration))

    def get(self, key: str) -> str:
        """Return the value under *key*, raising KeyError if there is none."""
        data = self.client.get(key)
        if data is None:
            raise KeyError(key)
        return data.decode("utf-8") if isinstance(data, bytes) else str(data)

    def delete(self, *args: str) -> None:
        """Remove the given keys."""
        self.client.delete(*args)

    def save_refresh_token(self, session_id: str, value: CacheValue, ttl: timedelta | None) -> None:
        """Store the session's value for *ttl*."""
        self.set(REFRESH_PREFIX + session_id, value.to_json(), ttl)

    def get_refresh_token(self, session_id: str) -> CacheValue | None:
        """Return the session's value, or None if the session is unknown."""
        try:
            data = self.get(REFRESH_PREFIX + session_id)
        except KeyError:
            return None
        return CacheValue.from_json(data)

    def delete_refresh_token(self, session_id: str) -> None:
        """Forget the session."""
        self.delete(REFRESH_PREFIX + session_id)


def connect_redis(addr: str) -> RedisCache:
    """Create a cache for a Redis server at ``host:port``."""
    host, sep, port = (addr or _DEFAULT_ADDR).rpartition(":")
    if not sep:
        host, port = addr, "6379"
    host = host.strip("[]") or "localhost"
    return RedisCache(redis.Redis(host=host, port=int(port)))