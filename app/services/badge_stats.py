"""Read-side projections over the badge catalog and a user's progress."""
from __future__ import annotations

from typing import Dict, List

from app.config import settings
from app.core.badges import BadgeCategory, BadgeRarity
from app.db.models.badge import Badge, UserBadgeProgress
from app.schemas.badge import (
    BadgeRead,
    BadgeStats,
    BadgeWithProgress,
    BucketCount,
    UserBadgeProgressRead,
)
from app.services.badge_catalog import BadgeCatalog
from app.services.badge_progress import ProgressStore
from app.utils.exceptions import BadgeNotFoundError


def progress_to_schema(row: UserBadgeProgress) -> UserBadgeProgressRead:
    return UserBadgeProgressRead(
        user_id=row.user_id,
        badge_id=row.badge_id,
        progress=row.progress or 0,
        is_unlocked=bool(row.is_unlocked),
        unlocked_at=row.unlocked_at,
        progress_updated_at=row.progress_updated_at,
        metadata=dict(row.meta or {}),
    )


def _with_progress(badge: Badge, row: UserBadgeProgress) -> BadgeWithProgress:
    return BadgeWithProgress(
        badge=BadgeRead.model_validate(badge),
        user_progress=progress_to_schema(row),
    )


class BadgeStatsService:
    """Compute badge summaries without mutating anything."""

    def __init__(
        self,
        catalog: BadgeCatalog,
        store: ProgressStore,
        *,
        limit: int | None = None,
    ) -> None:
        self.catalog = catalog
        self.store = store
        self.limit = limit or settings.BADGE_STATS_LIMIT

    def _progress_by_badge(self, user_id: str) -> Dict[str, UserBadgeProgress]:
        return {row.badge_id: row for row in self.store.list_for_user(user_id)}

    def _row_for(
        self, rows: Dict[str, UserBadgeProgress], user_id: str, badge_id: str
    ) -> UserBadgeProgress:
        row = rows.get(badge_id)
        if row is None:
            row = UserBadgeProgress(
                user_id=user_id, badge_id=badge_id, progress=0, is_unlocked=False, meta={}
            )
        return row

    def get_stats(self, user_id: str) -> BadgeStats:
        badges = self.catalog.list_badges()
        rows = self._progress_by_badge(user_id)

        by_rarity = {rarity: BucketCount() for rarity in BadgeRarity}
        by_category = {category: BucketCount() for category in BadgeCategory}
        unlocked: List[tuple[Badge, UserBadgeProgress]] = []
        locked: List[tuple[Badge, UserBadgeProgress]] = []

        for badge in badges:
            row = self._row_for(rows, user_id, badge.id)
            rarity_bucket = by_rarity[BadgeRarity(badge.rarity)]
            category_bucket = by_category[BadgeCategory(badge.category)]
            rarity_bucket.total += 1
            category_bucket.total += 1
            if row.is_unlocked:
                rarity_bucket.unlocked += 1
                category_bucket.unlocked += 1
                unlocked.append((badge, row))
            else:
                locked.append((badge, row))

        recent = sorted(unlocked, key=lambda pair: pair[0].id)
        recent.sort(key=lambda pair: pair[1].unlocked_at, reverse=True)

        # Hidden badges stay secret until unlocked.
        candidates = sorted(
            (pair for pair in locked if not pair[0].hidden), key=lambda pair: pair[0].id
        )
        candidates.sort(
            key=lambda pair: (pair[1].progress or 0) / pair[0].threshold, reverse=True
        )

        return BadgeStats(
            total_badges=len(badges),
            unlocked_badges=len(unlocked),
            locked_badges=len(badges) - len(unlocked),
            total_points=sum(badge.points or 0 for badge, _ in unlocked),
            by_rarity=by_rarity,
            by_category=by_category,
            recent_unlocks=[_with_progress(b, r) for b, r in recent[: self.limit]],
            next_closest_badges=[_with_progress(b, r) for b, r in candidates[: self.limit]],
        )

    def list_user_badges(self, user_id: str) -> List[BadgeWithProgress]:
        """Badges the user can see, each with the user's progress."""

        rows = self._progress_by_badge(user_id)
        return [
            _with_progress(badge, self._row_for(rows, user_id, badge.id))
            for badge in self.catalog.visible_badges(user_id)
        ]

    def get_badge_with_progress(self, user_id: str, badge_id: str) -> BadgeWithProgress:
        badge = self.catalog.require_badge(badge_id)
        row = self.store.get_progress(user_id, badge_id)
        if badge.hidden and not row.is_unlocked:
            raise BadgeNotFoundError(f"Badge {badge_id} not found", {"badge_id": badge_id})
        return _with_progress(badge, row)


__all__ = ["BadgeStatsService", "progress_to_schema"]
