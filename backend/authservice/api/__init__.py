"""API router aggregator."""
from fastapi import APIRouter

from authservice.api.routes import auth

api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router)

__all__ = ["api_router"]
