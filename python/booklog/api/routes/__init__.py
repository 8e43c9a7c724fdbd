"""API route definitions.

Uses a factory pattern to avoid import-time settings loading.
This allows tests to import modules without requiring all environment
variables to be configured upfront.
"""

from fastapi import APIRouter

from booklog.api.routes.annotations import router as annotations_router
from booklog.api.routes.auth import router as auth_router
from booklog.api.routes.books import router as books_router
from booklog.api.routes.health import router as health_router
from booklog.api.routes.logs import router as logs_router
from booklog.api.routes.me import router as me_router
from booklog.api.routes.tags import router as tags_router


def create_api_router() -> APIRouter:
    """Create and configure the API router.

    Returns:
        Configured APIRouter with all routes registered.
    """
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(me_router, tags=["user"])
    api_router.include_router(auth_router, tags=["auth"])
    api_router.include_router(books_router, tags=["books"])
    api_router.include_router(logs_router, tags=["logs"])
    api_router.include_router(annotations_router, tags=["annotations"])
    api_router.include_router(tags_router, tags=["tags"])
    return api_router


__all__ = ["create_api_router"]
