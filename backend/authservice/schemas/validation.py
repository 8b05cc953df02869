"""Human readable messages for schema validation failures."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

FIELD_LABELS = {
    "firstName": "First name",
    "lastName": "Last name",
    "username": "Username",
    "email": "Email",
    "password": "Password",
    "role": "Role",
    "credentials": "Email or username",
}

# Messages that read better than the generic templates below.
_FIELD_MESSAGES = {
    ("email", "value_error"): "Must be a valid email",
    ("role", "enum"): "Role must be either admin, manager, or user",
}


def _field_name(loc: Iterable[Any]) -> str:
    parts = [str(part) for part in loc if part != "body"]
    return ".".join(parts)


def _label(field: str) -> str:
    if not field:
        return "Request body"
    return FIELD_LABELS.get(field, field)


def format_error(error: Mapping[str, Any]) -> str:
    field = _field_name(error.get("loc", ()))
    error_type = error.get("type", "")
    ctx = error.get("ctx") or {}
    label = _label(field)

    if (field, error_type) in _FIELD_MESSAGES:
        return _FIELD_MESSAGES[(field, error_type)]
    if error_type == "missing" or (error_type == "string_too_short" and ctx.get("min_length") == 1):
        return f"{label} is required"
    if error_type == "string_too_short":
        return f"{label} must be at least {ctx.get('min_length')} characters long"
    if error_type == "string_type":
        return f"{label} must be a string"
    return f"{label}: {error.get('msg', 'is invalid')}"


def collect_messages(errors: Iterable[Mapping[str, Any]]) -> list[str]:
    """One message per violation, in the order pydantic reported them."""

    return [format_error(error) for error in errors]
