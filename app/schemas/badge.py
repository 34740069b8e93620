"""Pydantic schemas for badge endpoints, stats and unlock notifications."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from app.core.badges import BadgeCategory, BadgeRarity, TriggerKind


class BadgeCriteria(BaseModel):
    """Unlock rule: event kind, how many of them, and optional field filters."""

    event_type: TriggerKind
    threshold: int = Field(ge=1)
    filters: dict[str, Any] = Field(default_factory=dict)


class BadgeBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str = ""
    icon: str = ""
    category: BadgeCategory
    rarity: BadgeRarity = BadgeRarity.COMMON
    points: int = Field(0, ge=0)
    criteria: BadgeCriteria
    hidden: bool = False


class BadgeCreate(BadgeBase):
    """Administrative badge creation payload; the id is chosen by the caller."""

    id: str = Field(min_length=1, max_length=100, pattern=r"^[a-z0-9_\-]+$")


class BadgeUpdate(BaseModel):
    """Partial badge update; the id itself can never change."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    icon: str | None = None
    category: BadgeCategory | None = None
    rarity: BadgeRarity | None = None
    points: int | None = Field(None, ge=0)
    criteria: BadgeCriteria | None = None
    hidden: bool | None = None


class BadgeRead(BadgeBase):
    """Badge definition schema."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserBadgeProgressRead(BaseModel):
    """Progress of the caller toward one badge."""

    user_id: str
    badge_id: str
    progress: int
    is_unlocked: bool
    unlocked_at: datetime | None = None
    progress_updated_at: datetime | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class BadgeWithProgress(BaseModel):
    """Badge definition paired with the caller's progress record."""

    badge: BadgeRead
    user_progress: UserBadgeProgressRead


class BucketCount(BaseModel):
    total: int = 0
    unlocked: int = 0


class BadgeStats(BaseModel):
    """Summary of a user's badge collection."""

    total_badges: int
    unlocked_badges: int
    locked_badges: int
    total_points: int
    by_rarity: dict[BadgeRarity, BucketCount]
    by_category: dict[BadgeCategory, BucketCount]
    recent_unlocks: list[BadgeWithProgress] = Field(default_factory=list)
    next_closest_badges: list[BadgeWithProgress] = Field(default_factory=list)


class BadgeUnlockEvent(BaseModel):
    """Produced once when a user's progress first reaches a badge's threshold."""

    type: Literal["badge_unlocked"] = "badge_unlocked"
    user_id: str
    badge: BadgeRead
    timestamp: datetime
    metadata: dict[str, Any] = Field(default_factory=dict)


class BadgeUnlockMessage(BaseModel):
    """Envelope published to the real-time transport."""

    type: Literal["badge_unlocked"] = "badge_unlocked"
    data: BadgeUnlockEvent


class BadgeEventResponse(BaseModel):
    """Response after processing a trigger event."""

    newly_unlocked: list[BadgeUnlockEvent] = Field(default_factory=list)
    total_unlocked: int


class BadgeEvaluateResponse(BaseModel):
    """Response after syncing progress rows for the caller."""

    ok: bool = True
    created: int


class UserBadgeListResponse(BaseModel):
    items: list[BadgeWithProgress] = Field(default_factory=list)


__all__ = [
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
]
