"""FastAPI application factory."""
from __future__ import annotations

from typing import List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1 import api_router
from app.config import settings
from app.utils.exceptions import (
    BadgeNotFoundError,
    BadgeValidationError,
    EventValidationError,
    StorageUnavailableError,
    handle_badge_not_found,
    handle_badge_validation_error,
    handle_event_validation_error,
    handle_storage_unavailable,
)


tags_metadata: List[dict[str, str]] = [
    {"name": "badges", "description": "Badge catalog, evaluation and event ingestion."},
    {"name": "users", "description": "Badge progress and statistics for the caller."},
]


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Badge progress and unlock service for quest hunting.",
        version="0.1.0",
        openapi_tags=tags_metadata,
        docs_url=f"{settings.API_V1_STR}/docs",
        redoc_url=f"{settings.API_V1_STR}/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": exc.errors(), "message": "Validation failed"},
        )

    app.add_exception_handler(BadgeNotFoundError, handle_badge_not_found)
    app.add_exception_handler(BadgeValidationError, handle_badge_validation_error)
    app.add_exception_handler(EventValidationError, handle_event_validation_error)
    app.add_exception_handler(StorageUnavailableError, handle_storage_unavailable)

    app.include_router(api_router, prefix=settings.API_V1_STR)
    return app


app = create_app()
