import pytest

from authservice.core.errors import AppError, ErrorKind
from authservice.models import User
from authservice.schemas.user import UserCreate
from authservice.services.users import (
    authenticate_user,
    create_user,
    get_user_by_credentials,
    get_user_by_id,
    user_exists,
)

from conftest import registration_payload


def test_lost_registration_race_reports_existing_user(alice):
    # a second insert that skipped the existence check hits the unique index
    duplicate = UserCreate.model_validate(registration_payload(email="other@example.com"))

    with pytest.raises(AppError) as info:
        create_user(duplicate)

    assert info.value.kind is ErrorKind.USER_EXISTS
    assert User.objects.count() == 1


def test_user_exists_matches_either_field(alice):
    assert user_exists("alice", "nobody@example.com")
    assert user_exists("nobody", "Alice@Example.com")
    assert not user_exists("nobody", "nobody@example.com")


def test_lookup_by_credentials(alice):
    assert get_user_by_credentials("alice").id == alice.id
    assert get_user_by_credentials("alice@example.com").id == alice.id
    assert get_user_by_credentials("bob") is None


def test_lookup_by_id(alice):
    assert get_user_by_id(str(alice.id)).username == "alice"

    with pytest.raises(AppError) as info:
        get_user_by_id("42")

    assert info.value.kind is ErrorKind.MALFORMED_IDENTIFIER


def test_authenticate_user(alice):
    assert authenticate_user("alice", "wonderland").id == alice.id
    assert authenticate_user("alice", "WONDERLAND") is None
    assert authenticate_user("bob", "wonderland") is None
