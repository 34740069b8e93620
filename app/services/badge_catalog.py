"""Badge catalog: read access for the engine and administrative management."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, List

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.core.badges import filters_match, rarity_rank
from app.db.models.badge import Badge, UserBadgeProgress
from app.schemas.badge import BadgeCreate, BadgeUpdate
from app.schemas.events import TriggerEvent
from app.utils.cache import cache_backend
from app.utils.exceptions import (
    BadgeNotFoundError,
    BadgeValidationError,
    StorageUnavailableError,
)

CACHE_NAMESPACE = "badges:catalog"
CACHE_KEY = "active"

_CACHED_FIELDS = (
    "id",
    "name",
    "description",
    "icon",
    "category",
    "rarity",
    "points",
    "event_type",
    "threshold",
    "criteria_filters",
    "hidden",
    "is_active",
    "created_at",
    "updated_at",
)


def _badge_to_payload(badge: Badge) -> dict[str, Any]:
    return {field: getattr(badge, field) for field in _CACHED_FIELDS}


def _badge_from_payload(payload: dict[str, Any]) -> Badge:
    data = dict(payload)
    for field in ("created_at", "updated_at"):
        if isinstance(data.get(field), str):
            data[field] = datetime.fromisoformat(data[field])
    return Badge(**data)


def display_sort_key(badge: Badge) -> tuple:
    """Rarer first, then higher points, then id."""

    return (-rarity_rank(badge.rarity), -(badge.points or 0), badge.id)


class BadgeCatalog:
    """Manage badge definitions.

    Reads are served from a cached snapshot of the active catalog; every
    administrative write invalidates it so changes apply to the next event.
    Returned badges may be detached copies and must be treated as read-only.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def list_badges(self) -> List[Badge]:
        """Return every active badge ordered by id."""

        cached = cache_backend.get(CACHE_NAMESPACE, CACHE_KEY)
        if cached is not None:
            return [_badge_from_payload(item) for item in cached]

        try:
            badges = list(
                self.db.scalars(
                    select(Badge).where(Badge.is_active.is_(True)).order_by(Badge.id)
                )
            )
        except SQLAlchemyError as exc:
            raise StorageUnavailableError("Failed to load badge catalog") from exc

        cache_backend.set(
            CACHE_NAMESPACE,
            CACHE_KEY,
            [_badge_to_payload(badge) for badge in badges],
            ttl_seconds=settings.BADGE_CATALOG_CACHE_TTL_SECONDS,
        )
        return badges

    def get_badge(self, badge_id: str) -> Badge | None:
        """Return an active badge or ``None``."""

        for badge in self.list_badges():
            if badge.id == badge_id:
                return badge
        return None

    def require_badge(self, badge_id: str) -> Badge:
        badge = self.get_badge(badge_id)
        if badge is None:
            raise BadgeNotFoundError(f"Badge {badge_id} not found", {"badge_id": badge_id})
        return badge

    def badges_for_event(self, event: TriggerEvent) -> List[Badge]:
        """Return active badges whose criteria match the event kind and filters."""

        payload = event.payload()
        return [
            badge
            for badge in self.list_badges()
            if badge.event_type == event.kind
            and filters_match(badge.criteria_filters, payload)
        ]

    def visible_badges(self, user_id: str) -> List[Badge]:
        """Catalog listing for a user: hidden badges only once unlocked."""

        badges = self.list_badges()
        unlocked_ids: set[str] = set()
        if any(badge.hidden for badge in badges):
            try:
                unlocked_ids = set(
                    self.db.scalars(
                        select(UserBadgeProgress.badge_id).where(
                            UserBadgeProgress.user_id == user_id,
                            UserBadgeProgress.is_unlocked.is_(True),
                        )
                    )
                )
            except SQLAlchemyError as exc:
                raise StorageUnavailableError("Failed to load unlocked badges") from exc
        visible = [b for b in badges if not b.hidden or b.id in unlocked_ids]
        return sorted(visible, key=display_sort_key)

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------
    def create_badge(self, data: BadgeCreate) -> Badge:
        if self.db.get(Badge, data.id) is not None:
            raise BadgeValidationError(
                f"Badge {data.id} already exists", {"badge_id": data.id}
            )
        badge = Badge(id=data.id)
        self._assign(badge, data.model_dump(exclude={"id"}))
        self.db.add(badge)
        self._commit(f"create badge {data.id}")
        logger.info("Badge created", badge_id=badge.id, event_type=badge.event_type)
        return badge

    def update_badge(self, badge_id: str, changes: BadgeUpdate) -> Badge:
        badge = self._load_for_write(badge_id)
        self._assign(badge, changes.model_dump(exclude_unset=True))
        badge.updated_at = datetime.now(timezone.utc)
        self._commit(f"update badge {badge_id}")
        logger.info("Badge updated", badge_id=badge_id)
        return badge

    def retire_badge(self, badge_id: str) -> Badge:
        """Deactivate a badge; its progress rows are kept."""

        badge = self._load_for_write(badge_id)
        badge.is_active = False
        badge.updated_at = datetime.now(timezone.utc)
        self._commit(f"retire badge {badge_id}")
        logger.info("Badge retired", badge_id=badge_id)
        return badge

    def seed_badges(self, definitions: Iterable[BadgeCreate]) -> int:
        """Insert or refresh the given definitions, returning how many were new."""

        created = 0
        for definition in definitions:
            badge = self.db.get(Badge, definition.id)
            if badge is None:
                badge = Badge(id=definition.id)
                self.db.add(badge)
                created += 1
            self._assign(badge, definition.model_dump(exclude={"id"}))
            badge.is_active = True
        self._commit("seed badges")
        return created

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _load_for_write(self, badge_id: str) -> Badge:
        badge = self.db.get(Badge, badge_id)
        if badge is None or not badge.is_active:
            raise BadgeNotFoundError(f"Badge {badge_id} not found", {"badge_id": badge_id})
        return badge

    @staticmethod
    def _assign(badge: Badge, fields: dict[str, Any]) -> None:
        criteria = fields.pop("criteria", None)
        for key, value in fields.items():
            if value is None:
                continue
            setattr(badge, key, getattr(value, "value", value))
        if criteria is not None:
            badge.event_type = getattr(criteria["event_type"], "value", criteria["event_type"])
            badge.threshold = criteria["threshold"]
            badge.criteria_filters = dict(criteria.get("filters") or {})

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise BadgeValidationError(f"Could not {action}", {"error": str(exc.orig)}) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageUnavailableError(f"Could not {action}") from exc
        finally:
            cache_backend.invalidate(CACHE_NAMESPACE, CACHE_KEY)


__all__ = ["BadgeCatalog", "display_sort_key"]
