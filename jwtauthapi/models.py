"""User records, request payloads and response shapes."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any

from bson import ObjectId

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_NAME_RULES = "required,min=2,max=50"
_EMAIL_RULES = "required,email"
_LONG_TEXT_RULES = "required,min=8,max=100"
_TEXT_FIELDS = ("name", "email", "password", "provider", "role", "photo")


def _rules(rules: str) -> Any:
    return field(default="", metadata={"validate": rules})


def _as_utc(value: datetime | None) -> datetime:
    if value is None:
        return ZERO_TIME
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _format_time(value: datetime) -> str:
    value = _as_utc(value)
    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset()
    if not offset:
        return text + "Z"
    seconds = int(offset.total_seconds())
    sign = "+" if seconds >= 0 else "-"
    seconds = abs(seconds)
    return f"{text}{sign}{seconds // 3600:02d}:{seconds % 3600 // 60:02d}"


def _string_fields(cls: type, data: Any) -> dict[str, str]:
    if not isinstance(data, Mapping):
        raise ValueError("request body must be a JSON object")
    folded: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(key, str):
            folded[key.lower()] = value
    values: dict[str, str] = {}
    for item in fields(cls):
        value = data[item.name] if item.name in data else folded.get(item.name.lower(), "")
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise ValueError(
                f"cannot unmarshal {type(value).__name__} into field {item.name} of type string"
            )
        values[item.name] = value
    return values


@dataclass
class User:
    """A stored user account."""

    id: ObjectId | None = None
    name: str = _rules(_NAME_RULES)
    email: str = _rules(_EMAIL_RULES)
    password: str = _rules(_LONG_TEXT_RULES)
    provider: str = ""
    role: str = ""
    photo: str = ""
    verified: bool = False
    created_at: datetime = ZERO_TIME
    updated_at: datetime = ZERO_TIME

    def to_document(self) -> dict[str, Any]:
        """Return the MongoDB document for this user."""
        document: dict[str, Any] = {}
        if self.id is not None:
            document["_id"] = self.id
        document.update(
            name=self.name,
            email=self.email,
            password=self.password,
            provider=self.provider,
            role=self.role,
            photo=self.photo,
            verified=self.verified,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
        return document

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> User:
        """Build a user from a MongoDB document; absent fields take zero values."""
        text = {key: document.get(key) or "" for key in _TEXT_FIELDS}
        return cls(
            id=document.get("_id"),
            verified=bool(document.get("verified", False)),
            created_at=_as_utc(document.get("created_at")),
            updated_at=_as_utc(document.get("updated_at")),
            **text,
        )


@dataclass
class SignUpInput:
    """Registration request body."""

    name: str = _rules(_NAME_RULES)
    email: str = _rules(_EMAIL_RULES)
    password: str = _rules(_LONG_TEXT_RULES)
    password_confirm: str = _rules(_LONG_TEXT_RULES)
    photo: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> SignUpInput:
        """Build the payload from decoded JSON, raising ValueError on a bad shape."""
        return cls(**_string_fields(cls, data))


@dataclass
class SignInInput:
    """Login request body."""

    email: str = _rules(_EMAIL_RULES)
    password: str = _rules(_LONG_TEXT_RULES)

    @classmethod
    def from_dict(cls, data: Any) -> SignInInput:
        """Build the payload from decoded JSON, raising ValueError on a bad shape."""
        return cls(**_string_fields(cls, data))


@dataclass
class UserResponse:
    """The public view of a user."""

    id: ObjectId | None = None
    name: str = ""
    email: str = ""
    role: str = ""
    photo: str = ""
    provider: str = ""
    created_at: datetime = ZERO_TIME
    updated_at: datetime = ZERO_TIME

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form, leaving out empty optional fields."""
        result: dict[str, Any] = {}
        if self.id is not None:
            result["_id"] = str(self.id)
        for key in ("name", "email", "role", "photo", "provider"):
            value = getattr(self, key)
            if value:
                result[key] = value
        result["created_at"] = _format_time(self.created_at)
        result["updated_at"] = _format_time(self.updated_at)
        return result


@dataclass
class Tokens:
    """Tokens issued on sign-in."""

    session_id: str = ""
    access_token: str = ""
    refresh_token: str = ""


def filtered_user_response(user: User) -> UserResponse:
    """Strip a user down to the fields that may be shown to clients."""
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        provider=user.provider,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )