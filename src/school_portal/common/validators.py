from __future__ import annotations

import math
from typing import Any

from werkzeug.utils import secure_filename

from ..core.enums import AttendanceStatus
from ..core.exceptions import OutOfRange, ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_max_length(value: str, field_name: str, max_len: int) -> str:
    if len(value) > max_len:
        raise ValidationError(f"{field_name} must be at most {max_len} characters")
    return value


def require_finite_number(value: Any, field_name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    # float() also accepts "nan" and "inf".
    if not math.isfinite(number):
        raise OutOfRange(f"{field_name} must be a finite number", field=field_name)
    return number


def require_positive_int(value: Any, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if number <= 0:
        raise ValidationError(f"{field_name} must be a positive number")
    return number


def parse_status(value: Any) -> AttendanceStatus:
    try:
        return AttendanceStatus(str(value or "").strip().upper())
    except ValueError:
        raise ValidationError("Status must be one of P, A, L")


def sanitize_filename(name: str) -> str:
    """ASCII-only name without path parts or leading dots."""
    return secure_filename(name or "")


def file_extension(name: str) -> str:
    safe = sanitize_filename(name)
    if "." not in safe:
        return ""
    return safe.rsplit(".", 1)[1].lower()
