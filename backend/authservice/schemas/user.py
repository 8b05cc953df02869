"""Pydantic schemas for user operations."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from authservice.models import User, UserRole


class UserCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    first_name: str = Field(..., alias="firstName", min_length=1)
    last_name: str = Field(..., alias="lastName", min_length=1)
    username: str = Field(..., min_length=3)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: UserRole

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.lower()


class UserPublic(BaseModel):
    """Fields of a user that are safe to return to clients."""

    id: str
    username: str
    email: str
    role: UserRole

    @classmethod
    def from_document(cls, user: User) -> "UserPublic":
        return cls(id=str(user.id), username=user.username, email=user.email, role=user.role)
