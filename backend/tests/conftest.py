"""Shared fixtures: an in-memory MongoDB per test and an app wired to it."""
from __future__ import annotations

from typing import Any

import mongomock
import pytest
from fastapi.testclient import TestClient
from mongoengine import connect, disconnect

from authservice.core.config import Settings
from authservice.main import create_app
from authservice.models import User, UserRole
from authservice.schemas.user import UserCreate
from authservice.services.users import create_user

TEST_DB = "authservice-test"
TEST_SECRET = "test-secret-key-long-enough-for-hs256-signing"


@pytest.fixture(autouse=True)
def mongo_client():
    disconnect()
    client = connect(TEST_DB, host="mongodb://localhost", mongo_client_class=mongomock.MongoClient)
    yield client
    client.drop_database(TEST_DB)
    disconnect()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        mongo_uri="mongodb://localhost",
        jwt_secret_key=TEST_SECRET,
        jwt_expires_in=3600,
    )


@pytest.fixture
def client(settings: Settings) -> TestClient:
    return TestClient(create_app(settings))


def registration_payload(**overrides: Any) -> dict[str, Any]:
    payload = {
        "firstName": "Alice",
        "lastName": "Liddell",
        "username": "alice",
        "email": "alice@example.com",
        "password": "wonderland",
        "role": "user",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_user():
    def _make_user(**overrides: Any) -> User:
        return create_user(UserCreate.model_validate(registration_payload(**overrides)))

    return _make_user


@pytest.fixture
def alice(make_user) -> User:
    return make_user(role=UserRole.USER.value)
