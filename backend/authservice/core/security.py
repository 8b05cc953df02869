"""Security helpers for password hashing and token signing."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from passlib.context import CryptContext

from .config import Settings
from .errors import AppError, ErrorKind

logger = logging.getLogger(__name__)

_password_context = CryptContext(schemes=["argon2"], deprecated="auto")


class PasswordHasher:
    """Hash and verify user passwords using Argon2id."""

    @staticmethod
    def hash(password: str) -> str:
        try:
            return _password_context.hash(password)
        except (TypeError, ValueError) as exc:
            logger.error("Error hashing password: %s", exc)
            raise AppError(ErrorKind.HASHING_FAILURE, detail="Failed to hash password") from exc

    @staticmethod
    def verify(password: str, hashed: str) -> bool:
        try:
            return _password_context.verify(password, hashed)
        except (TypeError, ValueError) as exc:
            logger.error("Error comparing passwords: %s", exc)
            raise AppError(ErrorKind.VERIFICATION_FAILURE, detail="Failed to compare passwords") from exc


class TokenSigner:
    """Issue and verify short-lived JWT access tokens."""

    def __init__(self, secret: str | None, ttl_seconds: int, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._ttl_seconds = ttl_seconds
        self._algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenSigner":
        return cls(settings.jwt_secret_key, settings.jwt_expires_in, settings.jwt_algorithm)

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def issue(self, payload: dict[str, Any], ttl_seconds: int | None = None) -> str:
        if not self._secret:
            raise AppError(ErrorKind.TOKEN_ISSUANCE_FAILURE, detail="Token secret is not configured")

        now = datetime.now(timezone.utc)
        ttl = self._ttl_seconds if ttl_seconds is None else ttl_seconds
        claims = {**payload, "iat": now, "exp": now + timedelta(seconds=ttl)}
        try:
            return jwt.encode(claims, self._secret, algorithm=self._algorithm)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            logger.error("Error generating token: %s", exc)
            raise AppError(
                ErrorKind.TOKEN_ISSUANCE_FAILURE,
                detail="Failed to generate authentication token",
            ) from exc

    def verify(self, token: str) -> dict[str, Any]:
        if not self._secret:
            raise AppError(ErrorKind.TOKEN_INVALID, detail="Token secret is not configured")
        try:
            return jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError as exc:
            raise AppError(ErrorKind.TOKEN_EXPIRED, detail=str(exc)) from exc
        except jwt.InvalidTokenError as exc:
            raise AppError(ErrorKind.TOKEN_INVALID, detail=str(exc)) from exc
