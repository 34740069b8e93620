"""Best-effort publication of badge unlocks to the real-time transport."""
from __future__ import annotations

from typing import Protocol

import redis
from loguru import logger

from app.config import settings
from app.schemas.badge import BadgeUnlockEvent, BadgeUnlockMessage


class BadgeNotifier(Protocol):
    """Publish capability used by the event processor.

    Implementations must never raise: unlocks are already durable when
    ``emit`` runs, and clients recover missed messages by re-reading stats.
    """

    def emit(self, unlock_event: BadgeUnlockEvent) -> None:
        ...


class NullBadgeNotifier:
    """Drop notifications when no transport is configured."""

    def emit(self, unlock_event: BadgeUnlockEvent) -> None:
        logger.debug(
            "Badge notification dropped, no transport configured",
            user_id=unlock_event.user_id,
            badge_id=unlock_event.badge.id,
        )


class RedisBadgeNotifier:
    """Publish ``{"type": "badge_unlocked", "data": ...}`` on a per-user Redis channel."""

    def __init__(self, client: redis.Redis, channel_prefix: str | None = None) -> None:
        self.client = client
        self.channel_prefix = channel_prefix or settings.BADGE_NOTIFICATION_CHANNEL

    @classmethod
    def from_url(cls, redis_url: str, channel_prefix: str | None = None) -> "RedisBadgeNotifier":
        client = redis.Redis.from_url(redis_url, decode_responses=True, socket_timeout=1.5)
        return cls(client, channel_prefix)

    def channel_for(self, user_id: str) -> str:
        return f"{self.channel_prefix}:{user_id}"

    def emit(self, unlock_event: BadgeUnlockEvent) -> None:
        message = BadgeUnlockMessage(data=unlock_event)
        channel = self.channel_for(unlock_event.user_id)
        try:
            receivers = self.client.publish(channel, message.model_dump_json())
        except Exception as exc:
            logger.warning(
                "Failed to publish badge unlock",
                user_id=unlock_event.user_id,
                badge_id=unlock_event.badge.id,
                error=str(exc),
            )
            return
        logger.info(
            "Badge unlock published",
            user_id=unlock_event.user_id,
            badge_id=unlock_event.badge.id,
            receivers=receivers,
        )


_notifier_singleton: BadgeNotifier | None = None


def build_default_notifier() -> BadgeNotifier:
    """Pick the configured transport."""

    if not settings.BADGE_NOTIFICATIONS_ENABLED or not settings.REDIS_URL:
        return NullBadgeNotifier()
    return RedisBadgeNotifier.from_url(str(settings.REDIS_URL))


def get_notifier() -> BadgeNotifier:
    """Return the process-wide notifier, created on first use."""

    global _notifier_singleton
    if _notifier_singleton is None:
        _notifier_singleton = build_default_notifier()
    return _notifier_singleton


__all__ = [
    "BadgeNotifier",
    "NullBadgeNotifier",
    "RedisBadgeNotifier",
    "build_default_notifier",
    "get_notifier",
]
