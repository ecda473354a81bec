"""
Shared validation helpers for SlangDict services.
"""

from __future__ import annotations

from typing import Optional

from slangdict.errors import InvalidArgument


def validate_required_text(value: str, field: str, max_len: int) -> None:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f"{field} must be a non-empty string", field=field, error_type="required")
    if len(value) > max_len:
        raise InvalidArgument(f"{field} exceeds max length {max_len}", field=field, error_type="max_length")


def validate_id(value, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"{field} must be an integer", field=field, error_type="invalid_type")
    if value <= 0:
        raise InvalidArgument(f"{field} must be a positive integer", field=field, error_type="invalid_id")
    return value


def validate_optional_id(value, field: str) -> Optional[int]:
    if value is None:
        return None
    return validate_id(value, field)


def validate_limit(value: int, field: str, max_value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0 or value > max_value:
        raise InvalidArgument(f"{field} must be between 1 and {max_value}", field=field, error_type="out_of_range")


def validate_offset(value: int, field: str = "offset") -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidArgument(f"{field} must be a non-negative integer", field=field, error_type="out_of_range")
