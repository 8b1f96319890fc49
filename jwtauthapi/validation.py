"""Field validation driven by the rules attached to dataclass fields."""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass
from typing import Any, Callable

_EMAIL_RE = re.compile(
    r"[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)*"
)


@dataclass(frozen=True)
class ErrorResponse:
    """One failed rule on one field."""

    field: str
    tag: str
    value: str

    def to_dict(self) -> dict[str, str]:
        """Return the JSON form of the error."""
        return {"field": self.field, "tag": self.tag, "value": self.value}


def _size(value: Any) -> float:
    if isinstance(value, (str, bytes, list, tuple, dict, set)):
        return len(value)
    return value


def _required(value: Any, _param: str) -> bool:
    return bool(value)


def _min(value: Any, param: str) -> bool:
    return _size(value) >= float(param)


def _max(value: Any, param: str) -> bool:
    return _size(value) <= float(param)


def _email(value: Any, _param: str) -> bool:
    return isinstance(value, str) and _EMAIL_RE.fullmatch(value) is not None


_CHECKS: dict[str, Callable[[Any, str], bool]] = {
    "required": _required,
    "min": _min,
    "max": _max,
    "email": _email,
}


def _struct_field_name(name: str) -> str:
    return "".join(part.capitalize() for part in name.split("_"))


def validate_struct(payload: Any) -> list[ErrorResponse]:
    """Check every field of a dataclass instance against its rules.

    Returns one error per failing field, in field order; an empty list means
    the payload is valid.
    """
    if not dataclasses.is_dataclass(payload) or isinstance(payload, type):
        raise TypeError(f"expected a dataclass instance, got {type(payload).__name__}")

    errors: list[ErrorResponse] = []
    for item in dataclasses.fields(payload):
        rules = item.metadata.get("validate")
        if not rules:
            continue
        value = getattr(payload, item.name)
        for rule in rules.split(","):
            tag, _, param = rule.partition("=")
            try:
                check = _CHECKS[tag]
            except KeyError:
                raise ValueError(f"undefined validation rule {tag!r}") from None
            if not check(value, param):
                errors.append(ErrorResponse(_struct_field_name(item.name), tag, param))
                break
    return errors