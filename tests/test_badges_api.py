"""Tests for badge and user badge endpoints."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from fastapi.testclient import TestClient
from jose import jwt

from app.config import settings
from app.services.badge_progress import ProgressStore
from app.utils.exceptions import StorageUnavailableError


def badge_payload(badge_id: str, **overrides) -> dict:
    payload = {
        "id": badge_id,
        "name": badge_id.replace("_", " ").title(),
        "description": "Test badge",
        "category": "quest_completion",
        "rarity": "common",
        "points": 10,
        "criteria": {"event_type": "quest_completed", "threshold": 1},
    }
    payload.update(overrides)
    return payload


def test_requests_without_token_are_rejected(client: TestClient):
    assert client.get("/api/v1/badges").status_code == 401
    assert client.get("/api/v1/users/me/badges/stats").status_code == 401


def test_invalid_and_expired_tokens_are_rejected(client: TestClient):
    expired = jwt.encode(
        {"sub": "user-1", "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        settings.SECRET_KEY,
        algorithm="HS256",
    )

    for token in ("not-a-token", expired):
        response = client.get(
            "/api/v1/badges", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401


def test_list_badges_hides_secret_badges(client: TestClient, make_badge, headers_for):
    make_badge("first_quest", points=10)
    make_badge("legend", rarity="legendary", points=500)
    make_badge("secret_trail", hidden=True)

    response = client.get("/api/v1/badges", headers=headers_for())

    assert response.status_code == 200
    assert [badge["id"] for badge in response.json()] == ["legend", "first_quest"]
    assert response.json()[0]["criteria"]["threshold"] == 1


def test_get_badge_with_progress(client: TestClient, make_badge, headers_for):
    make_badge("quest_runner", threshold=3)

    response = client.get("/api/v1/badges/quest_runner", headers=headers_for())

    assert response.status_code == 200
    body = response.json()
    assert body["badge"]["id"] == "quest_runner"
    assert body["user_progress"]["progress"] == 0
    assert body["user_progress"]["is_unlocked"] is False


def test_get_unknown_or_hidden_badge_returns_404(client: TestClient, make_badge, headers_for):
    make_badge("secret_trail", hidden=True)

    assert client.get("/api/v1/badges/missing", headers=headers_for()).status_code == 404
    assert client.get("/api/v1/badges/secret_trail", headers=headers_for()).status_code == 404


def test_ingest_event_requires_service_role(client: TestClient, make_badge, headers_for):
    make_badge("first_quest")

    response = client.post(
        "/api/v1/badges/events",
        json={"kind": "quest_completed", "user_id": "user-1", "quest_id": "q1"},
        headers=headers_for(),
    )

    assert response.status_code == 403


def test_ingest_event_unlocks_and_notifies(
    client: TestClient, make_badge, headers_for, notifier
):
    make_badge("first_quest")
    service_headers = headers_for("quest-service", role=settings.SERVICE_ROLE)
    event = {"kind": "quest_completed", "user_id": "user-1", "quest_id": "q1"}

    first = client.post("/api/v1/badges/events", json=event, headers=service_headers)
    second = client.post("/api/v1/badges/events", json=event, headers=service_headers)

    assert first.status_code == 200
    assert first.json()["total_unlocked"] == 1
    unlock = first.json()["newly_unlocked"][0]
    assert unlock["type"] == "badge_unlocked"
    assert unlock["user_id"] == "user-1"
    assert unlock["badge"]["id"] == "first_quest"
    assert second.json() == {"newly_unlocked": [], "total_unlocked": 0}
    assert [sent.badge.id for sent in notifier.events] == ["first_quest"]


def test_ingest_invalid_event_returns_422(client: TestClient, headers_for):
    response = client.post(
        "/api/v1/badges/events",
        json={"kind": "quest_completed", "quest_id": "q1"},
        headers=headers_for("quest-service", role=settings.SERVICE_ROLE),
    )

    assert response.status_code == 422
    assert response.json()["detail"] == "Invalid trigger event"


def test_evaluate_creates_missing_rows(client: TestClient, make_badge, headers_for):
    make_badge("first_quest")
    make_badge("quest_runner", threshold=3)

    first = client.post("/api/v1/badges/evaluate", headers=headers_for())
    second = client.post("/api/v1/badges/evaluate", headers=headers_for())

    assert first.status_code == 200
    assert first.json() == {"ok": True, "created": 2}
    assert second.json() == {"ok": True, "created": 0}


def test_my_badges_and_stats(client: TestClient, make_badge, headers_for):
    make_badge("first_quest", points=10)
    make_badge("quest_veteran", threshold=25, rarity="epic", points=150)
    client.post(
        "/api/v1/badges/events",
        json={"kind": "quest_completed", "user_id": "user-1", "quest_id": "q1"},
        headers=headers_for("quest-service", role=settings.SERVICE_ROLE),
    )

    listing = client.get("/api/v1/users/me/badges", headers=headers_for())
    stats = client.get("/api/v1/users/me/badges/stats", headers=headers_for())

    assert listing.status_code == 200
    items = {item["badge"]["id"]: item["user_progress"] for item in listing.json()["items"]}
    assert items["first_quest"]["is_unlocked"] is True
    assert items["quest_veteran"]["progress"] == 1

    assert stats.status_code == 200
    body = stats.json()
    assert body["total_badges"] == 2
    assert body["unlocked_badges"] == 1
    assert body["locked_badges"] == 1
    assert body["total_points"] == 10
    assert body["by_rarity"]["epic"] == {"total": 1, "unlocked": 0}
    assert body["by_category"]["social"] == {"total": 0, "unlocked": 0}
    assert [item["badge"]["id"] for item in body["recent_unlocks"]] == ["first_quest"]
    assert [item["badge"]["id"] for item in body["next_closest_badges"]] == ["quest_veteran"]


def test_stats_are_per_user(client: TestClient, make_badge, headers_for):
    make_badge("first_quest")
    client.post(
        "/api/v1/badges/events",
        json={"kind": "quest_completed", "user_id": "user-1", "quest_id": "q1"},
        headers=headers_for("quest-service", role=settings.SERVICE_ROLE),
    )

    response = client.get("/api/v1/users/me/badges/stats", headers=headers_for("user-2"))

    assert response.json()["unlocked_badges"] == 0


def test_admin_badge_lifecycle(client: TestClient, headers_for):
    service_headers = headers_for("admin", role=settings.SERVICE_ROLE)

    created = client.post(
        "/api/v1/badges", json=badge_payload("night_owl"), headers=service_headers
    )
    duplicate = client.post(
        "/api/v1/badges", json=badge_payload("night_owl"), headers=service_headers
    )
    updated = client.patch(
        "/api/v1/badges/night_owl", json={"points": 75}, headers=service_headers
    )
    retired = client.delete("/api/v1/badges/night_owl", headers=service_headers)
    listing = client.get("/api/v1/badges", headers=headers_for())

    assert created.status_code == 201
    assert created.json()["id"] == "night_owl"
    assert duplicate.status_code == 409
    assert updated.status_code == 200
    assert updated.json()["points"] == 75
    assert retired.status_code == 204
    assert listing.json() == []


def test_admin_routes_reject_regular_users(client: TestClient, headers_for):
    response = client.post(
        "/api/v1/badges", json=badge_payload("night_owl"), headers=headers_for()
    )

    assert response.status_code == 403


def test_admin_create_rejects_invalid_payload(client: TestClient, headers_for):
    response = client.post(
        "/api/v1/badges",
        json=badge_payload("night_owl", points=-5),
        headers=headers_for("admin", role=settings.SERVICE_ROLE),
    )

    assert response.status_code == 422


def test_storage_failure_returns_503(client: TestClient, make_badge, headers_for, notifier):
    make_badge("first_quest")

    with patch.object(
        ProgressStore,
        "apply_delta",
        side_effect=StorageUnavailableError("Badge progress could not be saved"),
    ):
        response = client.post(
            "/api/v1/badges/events",
            json={"kind": "quest_completed", "user_id": "user-1", "quest_id": "q1"},
            headers=headers_for("quest-service", role=settings.SERVICE_ROLE),
        )

    assert response.status_code == 503
    assert "temporarily unavailable" in response.json()["detail"]
    assert notifier.events == []
