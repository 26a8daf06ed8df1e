from __future__ import annotations

from typing import Any, Mapping, Optional

from flask import request

from ..core.exceptions import ValidationError


def request_data() -> Mapping[str, Any]:
    """JSON body when present, otherwise the submitted form."""
    body = request.get_json(silent=True)
    if isinstance(body, dict):
        return body
    return request.form


def int_field(data: Mapping[str, Any], name: str) -> int:
    try:
        return int(data.get(name))
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number")


def optional_int_arg(name: str) -> Optional[int]:
    raw = request.args.get(name)
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a number")


def str_field(data: Mapping[str, Any], name: str) -> str:
    value = data.get(name)
    return "" if value is None else str(value)


def bool_field(data: Mapping[str, Any], name: str) -> bool:
    value = data.get(name)
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in {"1", "true", "yes", "on"}
