"""Custom exception classes and error handling utilities."""
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from loguru import logger


class QuestBadgesException(Exception):
    """Base exception for the application."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class BadgeNotFoundError(QuestBadgesException):
    """Referenced badge does not exist in the catalog."""


class BadgeValidationError(QuestBadgesException):
    """Administrative badge data is invalid or collides with an existing badge."""


class EventValidationError(QuestBadgesException):
    """A trigger event is malformed and was rejected before touching storage."""


class ProgressConflictError(QuestBadgesException):
    """A progress write lost a race against a concurrent write for the same key."""


class StorageUnavailableError(QuestBadgesException):
    """The persistence layer is unreachable or kept conflicting."""


async def handle_badge_not_found(request: Request, error: BadgeNotFoundError) -> JSONResponse:
    """Handle unknown badge lookups."""
    logger.info(f"Badge not found: {error.message}")
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": error.message},
    )


async def handle_badge_validation_error(
    request: Request, error: BadgeValidationError
) -> JSONResponse:
    """Handle rejected administrative badge changes."""
    logger.warning(f"Badge validation error: {error.message}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": error.message, "details": error.details},
    )


async def handle_event_validation_error(
    request: Request, error: EventValidationError
) -> JSONResponse:
    """Handle malformed trigger events."""
    logger.warning(f"Event validation error: {error.message}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": error.message, "details": error.details},
    )


async def handle_storage_unavailable(
    request: Request, error: StorageUnavailableError
) -> JSONResponse:
    """Handle persistence failures with a generic server error."""
    logger.error(f"Storage unavailable: {error.message}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Badge storage is temporarily unavailable. Please try again later."},
    )


__all__ = [
    "QuestBadgesException",
    "BadgeNotFoundError",
    "BadgeValidationError",
    "EventValidationError",
    "ProgressConflictError",
    "StorageUnavailableError",
    "handle_badge_not_found",
    "handle_badge_validation_error",
    "handle_event_validation_error",
    "handle_storage_unavailable",
]
