"""User service functions for registration and authentication."""
from __future__ import annotations

import logging

from bson import ObjectId
from bson.errors import InvalidId
from mongoengine.errors import NotUniqueError

from authservice.core.errors import AppError, ErrorKind
from authservice.core.security import PasswordHasher
from authservice.db.operations import Collection, Operation, mongo_operation
from authservice.models import User
from authservice.schemas.user import UserCreate

logger = logging.getLogger(__name__)


def get_user_by_credentials(credentials: str) -> User | None:
    """Find a user whose username or email equals ``credentials``."""

    query = {"$or": [{"email": credentials.lower()}, {"username": credentials}]}
    return mongo_operation(Collection.USERS, Operation.FIND_ONE, {"query": query})


def get_user_by_id(user_id: str) -> User | None:
    try:
        object_id = ObjectId(user_id)
    except (InvalidId, TypeError) as exc:
        raise AppError(ErrorKind.MALFORMED_IDENTIFIER, detail=f"Invalid user id {user_id!r}") from exc
    return mongo_operation(Collection.USERS, Operation.FIND_ONE, {"query": {"_id": object_id}})


def user_exists(username: str, email: str) -> bool:
    query = {"$or": [{"email": email.lower()}, {"username": username}]}
    return mongo_operation(Collection.USERS, Operation.COUNT, {"query": query}) > 0


def create_user(user_in: UserCreate) -> User:
    """Persist a new user with a hashed password.

    A unique index violation on insert means another registration won the
    race after the existence check and is reported as ``USER_EXISTS``.
    """

    document = {
        "first_name": user_in.first_name,
        "last_name": user_in.last_name,
        "username": user_in.username,
        "email": user_in.email,
        "password": PasswordHasher.hash(user_in.password),
        "role": user_in.role,
    }
    try:
        user = mongo_operation(Collection.USERS, Operation.CREATE, {"object": document})
    except NotUniqueError as exc:
        raise AppError(ErrorKind.USER_EXISTS, detail=str(exc)) from exc
    logger.info("Registered user %s (%s)", user.username, user.id)
    return user


def authenticate_user(credentials: str, password: str) -> User | None:
    user = get_user_by_credentials(credentials)
    if not user:
        logger.info("Login rejected: no user matches %s", credentials)
        return None
    if not PasswordHasher.verify(password, user.password):
        logger.info("Login rejected: wrong password for %s", user.username)
        return None
    return user
