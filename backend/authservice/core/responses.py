"""Single exit point used by every handler to build HTTP responses."""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from bson import ObjectId
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response

from .errors import AppError, ErrorKind

logger = logging.getLogger(__name__)

_RAW_CONTENT_TYPES = (bytes, bytearray, memoryview, str)


@dataclass(frozen=True)
class CookieDirective:
    """Cookie to set on a response.

    Defaults are development friendly; ``secure`` must be enabled in
    production.
    """

    name: str
    value: str
    http_only: bool = True
    same_site: Literal["lax", "strict", "none"] = "lax"
    path: str = "/"
    secure: bool = False
    expires: datetime | int | None = None
    max_age: int | None = None


def _apply_cookies(response: Response, cookies: Iterable[CookieDirective]) -> None:
    for cookie in cookies:
        if not cookie.name or not cookie.value:
            raise AppError(
                ErrorKind.INVALID_RESPONSE_CONTENT,
                detail="Invalid cookie: name and value must be provided",
            )
        response.set_cookie(
            key=cookie.name,
            value=cookie.value,
            max_age=cookie.max_age,
            expires=cookie.expires,
            path=cookie.path,
            secure=cookie.secure,
            httponly=cookie.http_only,
            samesite=cookie.same_site,
        )


def _build(
    message: str,
    data: Any,
    status_code: int,
    cookies: Iterable[CookieDirective],
    headers: Mapping[str, str] | None,
    content: Any,
    content_type: str,
) -> Response:
    if content is not None:
        if not isinstance(content, _RAW_CONTENT_TYPES):
            raise AppError(
                ErrorKind.INVALID_RESPONSE_CONTENT,
                detail=f"Unsupported content type {type(content).__name__} for raw response",
            )
        if isinstance(content, (bytearray, memoryview)):
            content = bytes(content)
        response: Response = Response(
            content=content,
            status_code=status_code,
            headers=dict(headers or {}),
            media_type=content_type,
        )
    else:
        body = {"message": message, "data": jsonable_encoder(data, custom_encoder={ObjectId: str})}
        response = JSONResponse(content=body, status_code=status_code, headers=dict(headers or {}))
    _apply_cookies(response, cookies)
    return response


def custom_response(
    message: str = "Success",
    data: Any = None,
    status_code: int = 200,
    cookies: Iterable[CookieDirective] = (),
    headers: Mapping[str, str] | None = None,
    content: bytes | bytearray | memoryview | str | None = None,
    content_type: str = "application/json",
) -> Response:
    """Build a response with either raw ``content`` or a ``{message, data}`` JSON body.

    Invalid content or cookies never escape: they degrade to a 500 JSON body.
    """

    try:
        return _build(message, data, status_code, cookies, headers, content, content_type)
    except AppError as exc:
        logger.error("Error creating response: %s", exc.detail or exc.message)
        return JSONResponse(
            content={"message": "Internal Server Error", "data": None},
            status_code=500,
        )
