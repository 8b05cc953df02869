import pytest
from pydantic import ValidationError

from authservice.core.errors import ErrorKind, classify
from authservice.models import UserRole
from authservice.schemas.auth import LoginRequest
from authservice.schemas.user import UserCreate
from authservice.schemas.validation import collect_messages

from conftest import registration_payload


def _messages(schema, data):
    with pytest.raises(ValidationError) as info:
        schema.model_validate(data)
    error = classify(info.value)
    assert error.kind is ErrorKind.VALIDATION
    return error.messages


def test_registration_reports_every_missing_field():
    assert _messages(UserCreate, {}) == [
        "First name is required",
        "Last name is required",
        "Username is required",
        "Email is required",
        "Password is required",
        "Role is required",
    ]


def test_registration_collects_all_violations():
    messages = _messages(
        UserCreate,
        registration_payload(username="al", email="not-an-email", password="123", role="superuser"),
    )

    assert messages == [
        "Username must be at least 3 characters long",
        "Must be a valid email",
        "Password must be at least 6 characters long",
        "Role must be either admin, manager, or user",
    ]


def test_empty_names_count_as_missing():
    assert _messages(UserCreate, registration_payload(firstName="", lastName="")) == [
        "First name is required",
        "Last name is required",
    ]


def test_valid_registration_is_normalised():
    user_in = UserCreate.model_validate(registration_payload(email="Alice@Example.COM", role="manager"))

    assert user_in.email == "alice@example.com"
    assert user_in.role is UserRole.MANAGER
    assert user_in.first_name == "Alice"


def test_login_requires_credentials_and_password():
    assert _messages(LoginRequest, {}) == ["Email or username is required", "Password is required"]
    assert _messages(LoginRequest, {"credentials": "", "password": ""}) == [
        "Email or username is required",
        "Password is required",
    ]


def test_non_object_body_is_reported():
    messages = _messages(LoginRequest, ["alice", "secret"])

    assert len(messages) == 1
    assert messages[0].startswith("Request body")


def test_request_body_locations_are_stripped():
    errors = [
        {"type": "missing", "loc": ("body", "firstName"), "msg": "Field required"},
        {"type": "string_too_short", "loc": ("body", "password"), "msg": "too short", "ctx": {"min_length": 6}},
    ]

    assert collect_messages(errors) == ["First name is required", "Password must be at least 6 characters long"]
