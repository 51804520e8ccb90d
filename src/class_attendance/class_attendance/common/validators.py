from __future__ import annotations

from ..core.exceptions import ValidationError


def require_positive_id(value: int, field_name: str) -> int:
    if value is None or int(value) <= 0:
        raise ValidationError(f"{field_name} is not valid")
    return int(value)


def require_range(value: int, field_name: str, low: int, high: int) -> int:
    if value is None or not low <= int(value) <= high:
        raise ValidationError(f"{field_name} must be between {low} and {high}")
    return int(value)
