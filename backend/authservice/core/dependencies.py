"""Reusable dependencies for FastAPI routes."""
from __future__ import annotations

import logging
from typing import Any

from fastapi import Depends, Request

from .config import Settings
from .errors import AppError, ErrorKind
from .security import TokenSigner

logger = logging.getLogger(__name__)

_BEARER_PREFIX = "bearer "


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_signer(settings: Settings = Depends(get_app_settings)) -> TokenSigner:
    return TokenSigner.from_settings(settings)


def _extract_token(request: Request, cookie_name: str) -> str | None:
    authorization = request.headers.get("Authorization", "")
    if authorization.lower().startswith(_BEARER_PREFIX):
        token = authorization[len(_BEARER_PREFIX):].strip()
        if token:
            return token
    return request.cookies.get(cookie_name) or None


def require_token(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    signer: TokenSigner = Depends(get_token_signer),
) -> dict[str, Any]:
    """Verify the bearer token and attach its payload to ``request.state.user``."""

    token = _extract_token(request, settings.cookie_name)
    if not token:
        raise AppError(ErrorKind.MISSING_TOKEN)

    try:
        payload = signer.verify(token)
    except AppError as exc:
        raise AppError(ErrorKind.BAD_REQUEST, "Invalid token", detail=exc.detail) from exc

    request.state.user = payload
    return payload
