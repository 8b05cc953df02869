"""FastAPI application entrypoint."""
from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from authservice.api import api_router
from authservice.core.config import Settings, get_settings
from authservice.db.session import MissingConnectionString, connect_db, disconnect_db

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger("pymongo").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    try:
        connect_db(settings)
    except (MissingConnectionString, PyMongoError) as exc:
        logger.error("Error connecting DB: %s", exc)
        raise

    try:
        yield
    finally:
        disconnect_db()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    return app


def run() -> None:
    """Console entrypoint: validate configuration and serve the app."""

    settings = get_settings()
    configure_logging(settings)
    logger.info("Running in %s mode", settings.mode_label)

    if not settings.mongo_uri:
        logger.error("MONGO_URI not found in environment variables")
        sys.exit(1)

    try:
        connect_db(settings)
    except PyMongoError as exc:
        logger.error("Error connecting DB: %s", exc)
        sys.exit(1)

    logger.info("Server running on port %s", settings.port)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


app = create_app()


if __name__ == "__main__":
    run()
