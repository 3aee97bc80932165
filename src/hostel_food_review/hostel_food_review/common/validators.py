from __future__ import annotations

import re
from enum import Enum
from typing import Any, Optional, Type, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)

_ALNUM = re.compile(r"^[A-Za-z0-9]+$")
HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def require_non_empty(value: Any, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_max_length(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} must be at most {max_len} characters")
    return value


def require_length_between(value: Optional[str], field_name: str, min_len: int, max_len: int) -> str:
    if value is None or not (min_len <= len(value) <= max_len):
        raise ValidationError(f"{field_name} must be between {min_len} and {max_len} characters")
    return value


def require_alphanumeric(value: str, field_name: str) -> str:
    if not _ALNUM.match(value or ""):
        raise ValidationError(f"{field_name} must be alphanumeric")
    return value


def require_enum(enum_cls: Type[E], value: Any, message: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(message)


def optional_enum(enum_cls: Type[E], value: Any, message: str) -> Optional[E]:
    if value in (None, "", "all"):
        return None
    return require_enum(enum_cls, value, message)


def clamp_int(value: Any, *, default: int, minimum: int, maximum: int) -> int:
    """Parse a query-string integer and clamp it; garbage falls back to ``default``."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        number = default
    return max(minimum, min(maximum, number))


def require_rating(value: Any) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
        raise ValidationError("Rating must be an integer between 1 and 5")
    return value
