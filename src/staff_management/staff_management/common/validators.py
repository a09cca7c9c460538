from __future__ import annotations

import re
from enum import Enum
from typing import Any, Optional, Type, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\+?[\d\s\-()]{10,15}$")
HHMM_RE = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")
MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def _as_text(value: Any, field_name: str) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise ValidationError(f"{field_name} must be text")


def require_non_empty(value: Optional[str], field_name: str) -> str:
    value = _as_text(value, field_name)
    if value is None or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    value = _as_text(value, field_name)
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_max_length(value: Optional[str], field_name: str, max_len: int) -> str:
    value = _as_text(value, field_name)
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} cannot exceed {max_len} characters")
    return value or ""


def require_length_between(value: Optional[str], field_name: str, min_len: int, max_len: int) -> str:
    value = require_non_empty(value, field_name)
    require_min_length(value, field_name, min_len)
    return require_max_length(value, field_name, max_len)


def require_email(value: Optional[str]) -> str:
    email = require_non_empty(value, "Email").lower()
    if not EMAIL_RE.match(email):
        raise ValidationError(f"{email} is not a valid email address")
    return email


def require_phone(value: Optional[str], field_name: str = "Phone") -> str:
    phone = require_non_empty(value, field_name)
    if not PHONE_RE.match(phone):
        raise ValidationError(f"{field_name} {phone} is not a valid phone number")
    return phone


def require_hhmm(value: Optional[str], field_name: str) -> str:
    v = require_non_empty(value, field_name)
    if not HHMM_RE.match(v):
        raise ValidationError(f"{field_name} must be in HH:MM format")
    return v


def require_id(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f"{field_name} must be a number")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")


def require_int_range(value: Any, field_name: str, low: int, high: int) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a whole number between {low} and {high}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a whole number between {low} and {high}")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"{field_name} must be a whole number between {low} and {high}")
    if number < low or number > high:
        raise ValidationError(f"{field_name} must be between {low} and {high}")
    return number


def require_enum(enum_cls: Type[E], value: Any, field_name: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except (TypeError, ValueError):
        allowed = ", ".join(str(m.value) for m in enum_cls)
        raise ValidationError(f"Invalid {field_name}. Must be one of: {allowed}")


def optional_enum(enum_cls: Type[E], value: Any, field_name: str) -> Optional[E]:
    if value is None or value == "":
        return None
    return require_enum(enum_cls, value, field_name)


def require_month(value: Optional[str]) -> str:
    v = require_non_empty(value, "Month")
    if not MONTH_RE.match(v):
        raise ValidationError("Month must be in YYYY-MM format")
    return v


def parse_bool(value: Any) -> Optional[bool]:
    """Parse query-string style booleans ('true'/'false'); None when absent."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}
