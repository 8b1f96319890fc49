"""Application settings read from an ``app.env`` file and the environment."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, fields
from datetime import timedelta
from decimal import Decimal
from pathlib import Path

from dotenv import dotenv_values

_UNIT_NANOSECONDS = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_NUMBER = r"(?:\d+\.?\d*|\.\d+)"
_UNIT = "(?:ns|us|\u00b5s|\u03bcs|ms|s|m|h)"
_DURATION_RE = re.compile(rf"[+-]?(?:{_NUMBER}{_UNIT})+")
_PART_RE = re.compile(rf"({_NUMBER})({_UNIT})")


@dataclass(frozen=True)
class Config:
    """Settings the API needs to reach its stores and sign tokens."""

    db_uri: str = ""
    redis_uri: str = ""
    port: str = ""
    access_jwt_secret: str = ""
    access_jwt_expires_in: timedelta = field(default_factory=timedelta)
    access_jwt_max_age: int = 0
    refresh_jwt_secret: str = ""
    refresh_jwt_expires_in: timedelta = field(default_factory=timedelta)
    refresh_jwt_max_age: int = 0
    client_origin: str = ""


_RENAMED_KEYS = {"db_uri": "MONGODB_LOCAL_URI", "redis_uri": "REDIS_URL"}


def _env_key(name: str) -> str:
    key = _RENAMED_KEYS.get(name, name.upper())
    return key.replace("EXPIRES_IN", "EXPIRED_IN").replace("MAX_AGE", "MAXAGE")


_SETTINGS = {item.name: _env_key(item.name) for item in fields(Config)}
_DURATION_FIELDS = {"access_jwt_expires_in", "refresh_jwt_expires_in"}
_INT_FIELDS = {"access_jwt_max_age", "refresh_jwt_max_age"}


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``"15m"``, ``"1h30m"`` or ``"-1.5s"``."""
    if text in ("0", "+0", "-0"):
        return timedelta(0)
    if not _DURATION_RE.fullmatch(text):
        raise ValueError(f"invalid duration {text!r}")
    sign = -1 if text.startswith("-") else 1
    nanoseconds = sum(
        (Decimal(number) * _UNIT_NANOSECONDS[unit] for number, unit in _PART_RE.findall(text)),
        Decimal(0),
    )
    return sign * timedelta(microseconds=int(nanoseconds / 1000))


def _parse_int(key: str, raw: str) -> int:
    stripped = raw.strip()
    if not stripped:
        return 0
    try:
        return int(stripped)
    except ValueError as exc:
        raise ValueError(f"{key}: cannot parse {raw!r} as an integer") from exc


def load_config(path: str | os.PathLike[str] = ".") -> Config:
    """Read ``app.env`` from *path*; environment variables override its values."""
    env_file = Path(path) / "app.env"
    if not env_file.is_file():
        raise FileNotFoundError(f'Config File "app" Not Found in "{Path(path).resolve()}"')

    values = {key.upper(): (value or "") for key, value in dotenv_values(env_file).items()}
    for key in _SETTINGS.values():
        if key in os.environ:
            values[key] = os.environ[key]

    settings: dict[str, object] = {}
    for attribute, key in _SETTINGS.items():
        if key not in values:
            continue
        raw = values[key]
        if attribute in _DURATION_FIELDS:
            try:
                settings[attribute] = parse_duration(raw)
            except ValueError as exc:
                raise ValueError(f"{key}: {exc}") from exc
        elif attribute in _INT_FIELDS:
            settings[attribute] = _parse_int(key, raw)
        else:
            settings[attribute] = raw
    return Config(**settings)