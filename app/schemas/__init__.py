"""Pydantic schemas package."""

from app.schemas.auth import CurrentUser, TokenPayload
from app.schemas.badge import (
    BadgeCreate,
    BadgeCriteria,
    BadgeEvaluateResponse,
    BadgeEventResponse,
    BadgeRead,
    BadgeStats,
    BadgeUnlockEvent,
    BadgeUnlockMessage,
    BadgeUpdate,
    BadgeWithProgress,
    BucketCount,
    UserBadgeListResponse,
    UserBadgeProgressRead,
)
from app.schemas.events import TriggerEvent, parse_trigger_event

__all__ = [
    "CurrentUser",
    "TokenPayload",
    "BadgeCreate",
    "BadgeCriteria",
    "BadgeEvaluateResponse",
    "BadgeEventResponse",
    "BadgeRead",
    "BadgeStats",
    "BadgeUnlockEvent",
    "BadgeUnlockMessage",
    "BadgeUpdate",
    "BadgeWithProgress",
    "BucketCount",
    "UserBadgeListResponse",
    "UserBadgeProgressRead",
    "TriggerEvent",
    "parse_trigger_event",
]
