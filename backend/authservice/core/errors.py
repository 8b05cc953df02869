"""Error taxonomy and the error-to-response boundary used by every route."""
from __future__ import annotations

import json
import logging
from collections.abc import Callable, Coroutine
from enum import Enum
from typing import Any

import jwt
from bson.errors import InvalidId
from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.routing import APIRoute
from mongoengine.connection import ConnectionFailure as MongoEngineConnectionFailure
from mongoengine.errors import NotUniqueError
from mongoengine.errors import ValidationError as DocumentValidationError
from pydantic import ValidationError as SchemaValidationError
from pymongo.errors import ConnectionFailure, DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from authservice.schemas.validation import collect_messages

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    USER_EXISTS = "user_exists"
    INVALID_CREDENTIALS = "invalid_credentials"
    CONFLICT = "conflict"
    MISSING_TOKEN = "missing_token"
    TOKEN_INVALID = "token_invalid"
    TOKEN_EXPIRED = "token_expired"
    MALFORMED_REQUEST = "malformed_request"
    STORE_UNAVAILABLE = "store_unavailable"
    MALFORMED_IDENTIFIER = "malformed_identifier"
    BAD_REQUEST = "bad_request"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    COLLECTION_NOT_FOUND = "collection_not_found"
    UNSUPPORTED_OPERATION = "unsupported_operation"
    INVALID_OPERATION_INPUT = "invalid_operation_input"
    HASHING_FAILURE = "hashing_failure"
    VERIFICATION_FAILURE = "verification_failure"
    TOKEN_ISSUANCE_FAILURE = "token_issuance_failure"
    INVALID_RESPONSE_CONTENT = "invalid_response_content"
    INTERNAL = "internal"


_INTERNAL_MESSAGE = "An internal server error occurred"

# (status code, public message) per kind.
_RESPONSES: dict[ErrorKind, tuple[int, str]] = {
    ErrorKind.VALIDATION: (400, "Validation Error"),
    ErrorKind.USER_EXISTS: (400, "User already exists"),
    ErrorKind.INVALID_CREDENTIALS: (400, "Invalid credentials"),
    ErrorKind.CONFLICT: (409, "Duplicate entry error"),
    ErrorKind.MISSING_TOKEN: (401, "Access denied. No token provided."),
    ErrorKind.TOKEN_INVALID: (401, "Invalid token"),
    ErrorKind.TOKEN_EXPIRED: (401, "Token expired"),
    ErrorKind.MALFORMED_REQUEST: (400, "Syntax error in request"),
    ErrorKind.STORE_UNAVAILABLE: (503, "Service unavailable, please try again"),
    ErrorKind.MALFORMED_IDENTIFIER: (400, "Invalid data format"),
    ErrorKind.BAD_REQUEST: (400, "Bad request"),
    ErrorKind.FORBIDDEN: (403, "Forbidden"),
    ErrorKind.NOT_FOUND: (404, "Resource not found"),
    ErrorKind.COLLECTION_NOT_FOUND: (500, _INTERNAL_MESSAGE),
    ErrorKind.UNSUPPORTED_OPERATION: (500, _INTERNAL_MESSAGE),
    ErrorKind.INVALID_OPERATION_INPUT: (500, _INTERNAL_MESSAGE),
    ErrorKind.HASHING_FAILURE: (500, _INTERNAL_MESSAGE),
    ErrorKind.VERIFICATION_FAILURE: (500, _INTERNAL_MESSAGE),
    ErrorKind.TOKEN_ISSUANCE_FAILURE: (500, _INTERNAL_MESSAGE),
    ErrorKind.INVALID_RESPONSE_CONTENT: (500, _INTERNAL_MESSAGE),
    ErrorKind.INTERNAL: (500, _INTERNAL_MESSAGE),
}

_missing = set(ErrorKind) - set(_RESPONSES)
if _missing:
    raise RuntimeError(f"No response mapping for error kinds: {sorted(k.value for k in _missing)}")

_STATUS_PASSTHROUGH = {
    400: ErrorKind.BAD_REQUEST,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
}


class AppError(Exception):
    """Tagged application error.

    ``message`` overrides the public message of the kind, ``detail`` is only
    logged and ``messages`` carries the field-level validation messages.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str | None = None,
        *,
        detail: str | None = None,
        messages: list[str] | None = None,
    ) -> None:
        self.kind = kind
        self.status_code, default_message = _RESPONSES[kind]
        self.message = message or default_message
        self.detail = detail
        self.messages = messages or []
        super().__init__(detail or self.message)

    def __repr__(self) -> str:
        return f"AppError(kind={self.kind.value!r}, message={self.message!r})"


def _from_request_validation(exc: RequestValidationError) -> AppError:
    errors = exc.errors()
    if any(error.get("type") == "json_invalid" for error in errors):
        return AppError(ErrorKind.MALFORMED_REQUEST, detail=str(errors))
    return AppError(ErrorKind.VALIDATION, messages=collect_messages(errors))


def classify(exc: BaseException) -> AppError:
    """Map any exception to an ``AppError``; the first matching rule wins."""

    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, RequestValidationError):
        return _from_request_validation(exc)
    if isinstance(exc, SchemaValidationError):
        return AppError(ErrorKind.VALIDATION, messages=collect_messages(exc.errors()))
    if isinstance(exc, (NotUniqueError, DuplicateKeyError)):
        return AppError(ErrorKind.CONFLICT, detail=str(exc))
    if isinstance(exc, jwt.ExpiredSignatureError):
        return AppError(ErrorKind.TOKEN_EXPIRED, detail=str(exc))
    if isinstance(exc, jwt.InvalidTokenError):
        return AppError(ErrorKind.TOKEN_INVALID, detail=str(exc))
    if isinstance(exc, json.JSONDecodeError):
        return AppError(ErrorKind.MALFORMED_REQUEST, detail=str(exc))
    if isinstance(exc, (ConnectionFailure, MongoEngineConnectionFailure)):
        return AppError(ErrorKind.STORE_UNAVAILABLE, detail=str(exc))
    if isinstance(exc, (InvalidId, DocumentValidationError)):
        return AppError(ErrorKind.MALFORMED_IDENTIFIER, detail=str(exc))
    if isinstance(exc, StarletteHTTPException) and exc.status_code in _STATUS_PASSTHROUGH:
        return AppError(_STATUS_PASSTHROUGH[exc.status_code], detail=str(exc.detail))
    return AppError(ErrorKind.INTERNAL, detail=repr(exc))


def render_error(request: Request | None, exc: BaseException) -> Response:
    """Classify ``exc``, log it and produce the formatted error response."""

    from authservice.core.responses import custom_response

    error = classify(exc)
    path = request.url.path if request is not None else "-"
    if error.status_code >= 500:
        logger.error("%s %s failed: %s", path, error.kind.value, error.detail or error.message, exc_info=exc)
    else:
        logger.warning("%s rejected (%s): %s", path, error.kind.value, error.detail or error.message)

    data = ", ".join(error.messages) if error.kind is ErrorKind.VALIDATION else None
    return custom_response(message=error.message, data=data, status_code=error.status_code)


class ErrorHandlingRoute(APIRoute):
    """Route class that turns every failure of the handler chain into a response."""

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        original_route_handler = super().get_route_handler()

        async def route_handler(request: Request) -> Response:
            try:
                return await original_route_handler(request)
            except Exception as exc:  # noqa: BLE001
                return render_error(request, exc)

        return route_handler
