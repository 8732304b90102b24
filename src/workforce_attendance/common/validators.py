from __future__ import annotations

from ..core.constants import MAX_NOTE_LENGTH, MAX_PAGE_SIZE
from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_positive_int(value, field_name: str, *, maximum: int | None = None) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if number < 1:
        raise ValidationError(f"{field_name} must be at least 1")
    if maximum is not None and number > maximum:
        raise ValidationError(f"{field_name} must be at most {maximum}")
    return number


def require_page_size(value) -> int:
    return require_positive_int(value, "limit", maximum=MAX_PAGE_SIZE)


def optional_note(value, field_name: str = "notes") -> str | None:
    """Stripped note text, or None when blank."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    value = value.strip()
    if not value:
        return None
    if len(value) > MAX_NOTE_LENGTH:
        raise ValidationError(f"{field_name} must be at most {MAX_NOTE_LENGTH} characters")
    return value


def require_coordinate(value, field_name: str, *, limit: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field_name} must be a number")
    if not -limit <= value <= limit:
        raise ValidationError(f"{field_name} must be between -{limit:g} and {limit:g}")
    return float(value)
