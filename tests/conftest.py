"""Pytest fixtures for service and API tests."""

import os
from collections.abc import Callable, Generator

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("BADGE_NOTIFICATIONS_ENABLED", "false")
os.environ.setdefault("BADGE_RETRY_WAIT_SECONDS", "0")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api import deps
from app.core.security import create_access_token
from app.db.base import Base
from app.db.models.badge import Badge, UserBadgeProgress
from app.main import create_app
from app.schemas.badge import BadgeCreate, BadgeUnlockEvent
from app.services.badge_catalog import BadgeCatalog
from app.services.badge_events import BadgeEventProcessor
from app.services.badge_progress import ProgressStore
from app.utils.cache import cache_backend


class RecordingNotifier:
    """Notifier double that keeps every emitted unlock."""

    def __init__(self) -> None:
        self.events: list[BadgeUnlockEvent] = []

    def emit(self, unlock_event: BadgeUnlockEvent) -> None:
        self.events.append(unlock_event)


@pytest.fixture(scope="session")
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session(db_engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=db_engine, expire_on_commit=False
    )
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.query(UserBadgeProgress).delete()
        db.query(Badge).delete()
        db.commit()
        db.close()


@pytest.fixture(autouse=True)
def clear_cache() -> Generator[None, None, None]:
    # Keep tests independent of any local Redis server.
    cache_backend._redis = None
    cache_backend.clear()
    try:
        yield
    finally:
        cache_backend.clear()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def catalog(db_session) -> BadgeCatalog:
    return BadgeCatalog(db_session)


@pytest.fixture()
def store(db_session) -> ProgressStore:
    return ProgressStore(db_session, retry_wait_seconds=0)


@pytest.fixture()
def processor(catalog, store, notifier) -> BadgeEventProcessor:
    return BadgeEventProcessor(catalog, store, notifier)


@pytest.fixture()
def make_badge(catalog) -> Callable[..., Badge]:
    """Create a badge through the catalog so the cached snapshot stays current."""

    def factory(
        badge_id: str,
        event_type: str = "quest_completed",
        threshold: int = 1,
        **overrides,
    ) -> Badge:
        fields = {
            "id": badge_id,
            "name": badge_id.replace("_", " ").title(),
            "category": "quest_completion",
            "rarity": "common",
            "points": 10,
            "criteria": {
                "event_type": event_type,
                "threshold": threshold,
                "filters": overrides.pop("filters", {}),
            },
        }
        fields.update(overrides)
        return catalog.create_badge(BadgeCreate(**fields))

    return factory


@pytest.fixture()
def client(db_session: Session, notifier: RecordingNotifier) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_notifier] = lambda: notifier
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def headers_for() -> Callable[..., dict[str, str]]:
    def build(user_id: str = "user-1", role: str = "authenticated") -> dict[str, str]:
        token = create_access_token(user_id, role=role)
        return {"Authorization": f"Bearer {token}"}

    return build
