"""Tests for badge unlock publication."""
from __future__ import annotations

import json
from datetime import datetime, timezone

import redis

from app.config import settings
from app.schemas.badge import BadgeRead, BadgeUnlockEvent
from app.services.badge_notifications import (
    NullBadgeNotifier,
    RedisBadgeNotifier,
    build_default_notifier,
)


class FakeRedis:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.published: list[tuple[str, str]] = []

    def publish(self, channel: str, message: str) -> int:
        if self.error is not None:
            raise self.error
        self.published.append((channel, message))
        return 1


def make_unlock(user_id: str = "user-1") -> BadgeUnlockEvent:
    badge = BadgeRead(
        id="first_quest",
        name="First Quest",
        category="quest_completion",
        rarity="common",
        points=10,
        criteria={"event_type": "quest_completed", "threshold": 1},
    )
    return BadgeUnlockEvent(
        user_id=user_id,
        badge=badge,
        timestamp=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        metadata={"quest_id": "q1"},
    )


def test_redis_notifier_publishes_envelope_on_user_channel():
    client = FakeRedis()
    notifier = RedisBadgeNotifier(client, channel_prefix="badges:unlocked")

    notifier.emit(make_unlock("user-7"))

    assert len(client.published) == 1
    channel, raw = client.published[0]
    assert channel == "badges:unlocked:user-7"
    message = json.loads(raw)
    assert message["type"] == "badge_unlocked"
    assert message["data"]["badge"]["id"] == "first_quest"
    assert message["data"]["user_id"] == "user-7"
    assert message["data"]["metadata"] == {"quest_id": "q1"}


def test_redis_notifier_swallows_transport_errors():
    client = FakeRedis(error=redis.ConnectionError("down"))
    notifier = RedisBadgeNotifier(client)

    notifier.emit(make_unlock())

    assert client.published == []


def test_null_notifier_accepts_events():
    NullBadgeNotifier().emit(make_unlock())


def test_default_notifier_respects_settings(monkeypatch):
    monkeypatch.setattr(settings, "BADGE_NOTIFICATIONS_ENABLED", False)

    assert isinstance(build_default_notifier(), NullBadgeNotifier)
