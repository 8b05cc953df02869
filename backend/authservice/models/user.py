"""Document model for application users."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from mongoengine import DateTimeField, Document, EmailField, EnumField, StringField


class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Document):
    """Application user with hashed password and role."""

    first_name = StringField(required=True)
    last_name = StringField(required=True)
    username = StringField(required=True, unique=True, min_length=3)
    email = EmailField(required=True, unique=True)
    password = StringField(required=True)
    role = EnumField(UserRole, required=True)
    created_at = DateTimeField(default=_utcnow)

    meta = {"collection": "users"}

    # Fields covered by the text index that backs full-text search.
    search_fields = ("username", "email", "first_name", "last_name")
