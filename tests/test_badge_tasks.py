"""Tests for Celery badge tasks."""
from __future__ import annotations

from unittest.mock import patch

import pytest
from sqlalchemy.orm import sessionmaker

from app.db.models.badge import UserBadgeProgress
from app.tasks.badges import process_badge_event, sync_user_badges


@pytest.fixture()
def task_session_factory(db_session):
    factory = sessionmaker(
        autocommit=False, autoflush=False, bind=db_session.bind, expire_on_commit=False
    )
    sessions: list = []

    def create_session():
        session = factory()
        sessions.append(session)
        return session

    try:
        yield create_session
    finally:
        for session in sessions:
            session.close()


def test_process_badge_event_unlocks(db_session, task_session_factory, make_badge, notifier):
    make_badge("first_quest")

    with patch("app.tasks.badges.SessionLocal", side_effect=task_session_factory), patch(
        "app.tasks.badges.get_notifier", return_value=notifier
    ):
        result = process_badge_event.run(
            {"kind": "quest_completed", "user_id": "user-1", "quest_id": "q1"}
        )

    assert result == {
        "accepted": True,
        "user_id": "user-1",
        "unlocked_badge_ids": ["first_quest"],
    }
    assert [sent.badge.id for sent in notifier.events] == ["first_quest"]
    row = db_session.get(UserBadgeProgress, ("user-1", "first_quest"))
    assert row is not None
    assert row.is_unlocked is True


def test_process_badge_event_rejects_malformed_payload(task_session_factory, notifier):
    with patch("app.tasks.badges.SessionLocal", side_effect=task_session_factory), patch(
        "app.tasks.badges.get_notifier", return_value=notifier
    ):
        result = process_badge_event.run({"kind": "quest_completed", "quest_id": "q1"})

    assert result == {"accepted": False, "error": "Invalid trigger event"}
    assert notifier.events == []


def test_sync_user_badges_creates_rows(task_session_factory, make_badge):
    make_badge("first_quest")
    make_badge("quest_runner", threshold=3)

    with patch("app.tasks.badges.SessionLocal", side_effect=task_session_factory):
        first = sync_user_badges.run("user-1")
        second = sync_user_badges.run("user-1")

    assert first == {"user_id": "user-1", "created": 2}
    assert second == {"user_id": "user-1", "created": 0}
