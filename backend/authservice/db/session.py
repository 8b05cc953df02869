"""Database connection management."""
from __future__ import annotations

import logging

from mongoengine import connect, disconnect
from mongoengine.connection import get_db

from authservice.core.config import Settings
from authservice.models import User

logger = logging.getLogger(__name__)

SEARCH_INDEX_NAME = "users_text_search"


class MissingConnectionString(RuntimeError):
    """Raised when MONGO_URI is not configured."""


def ensure_search_index() -> None:
    """Create the text index used by the ``search`` operation."""

    collection = User._get_collection()
    collection.create_index([(field, "text") for field in User.search_fields], name=SEARCH_INDEX_NAME)


def connect_db(settings: Settings) -> None:
    """Connect mongoengine to MongoDB and verify the server answers."""

    if not settings.mongo_uri:
        raise MissingConnectionString("MONGO_URI not found in environment variables")

    connect(
        db=settings.mongo_db,
        host=settings.mongo_uri,
        serverSelectionTimeoutMS=settings.mongo_timeout_ms,
        tz_aware=True,
        uuidRepresentation="standard",
    )
    get_db().client.admin.command("ping")
    ensure_search_index()
    logger.info("DB Connected Successfully")


def disconnect_db() -> None:
    disconnect()
    logger.info("DB connection closed")
