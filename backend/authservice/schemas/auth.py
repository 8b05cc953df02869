"""Authentication-related schemas."""
from __future__ import annotations

from pydantic import BaseModel, Field

from .user import UserPublic


class LoginRequest(BaseModel):
    credentials: str = Field(..., min_length=1, description="Email or username")
    password: str = Field(..., min_length=1)


class AuthData(BaseModel):
    token: str
    user: UserPublic
