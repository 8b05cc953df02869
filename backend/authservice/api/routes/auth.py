"""Authentication endpoints."""
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Response, status

from authservice.core.config import Settings
from authservice.core.dependencies import get_app_settings, get_token_signer, require_token
from authservice.core.errors import AppError, ErrorHandlingRoute, ErrorKind
from authservice.core.responses import CookieDirective, custom_response
from authservice.core.security import TokenSigner
from authservice.models import User
from authservice.schemas.auth import AuthData, LoginRequest
from authservice.schemas.user import UserCreate, UserPublic
from authservice.services.users import authenticate_user, create_user, get_user_by_id, user_exists

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"], route_class=ErrorHandlingRoute)


def _session_cookie(token: str, signer: TokenSigner, settings: Settings) -> CookieDirective:
    return CookieDirective(
        name=settings.cookie_name,
        value=token,
        secure=settings.cookie_secure,
        max_age=signer.ttl_seconds,
    )


def _auth_data(token: str, user: User) -> dict[str, Any]:
    return AuthData(token=token, user=UserPublic.from_document(user)).model_dump(mode="json")


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register_user(
    payload: UserCreate,
    settings: Settings = Depends(get_app_settings),
    signer: TokenSigner = Depends(get_token_signer),
) -> Response:
    if user_exists(payload.username, payload.email):
        raise AppError(ErrorKind.USER_EXISTS, detail=f"username={payload.username} email={payload.email}")

    user = create_user(payload)
    token = signer.issue({"userId": str(user.id), "username": user.username, "role": user.role.value})

    return custom_response(
        message="User registered and logged in successfully",
        data=_auth_data(token, user),
        status_code=status.HTTP_201_CREATED,
        cookies=[_session_cookie(token, signer, settings)],
    )


@router.post("/login")
def login(
    payload: LoginRequest,
    settings: Settings = Depends(get_app_settings),
    signer: TokenSigner = Depends(get_token_signer),
) -> Response:
    user = authenticate_user(payload.credentials, payload.password)
    if not user:
        raise AppError(ErrorKind.INVALID_CREDENTIALS)

    token = signer.issue({"userId": str(user.id)})
    logger.info("Login: %s (%s)", user.username, user.id)

    return custom_response(
        message="Login successful",
        data=_auth_data(token, user),
        cookies=[_session_cookie(token, signer, settings)],
    )


@router.get("/me")
def current_user(token_payload: dict[str, Any] = Depends(require_token)) -> Response:
    user = get_user_by_id(str(token_payload.get("userId", "")))
    if not user:
        raise AppError(ErrorKind.NOT_FOUND, "User not found")

    return custom_response(
        data={"user": UserPublic.from_document(user).model_dump(mode="json"), "token": token_payload},
    )
