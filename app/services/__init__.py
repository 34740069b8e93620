"""Service layer package."""

from app.services.badge_catalog import BadgeCatalog
from app.services.badge_events import BadgeEventProcessor
from app.services.badge_notifications import (
    BadgeNotifier,
    NullBadgeNotifier,
    RedisBadgeNotifier,
)
from app.services.badge_progress import ProgressStore, ProgressUpdate
from app.services.badge_stats import BadgeStatsService

__all__ = [
    "BadgeCatalog",
    "BadgeEventProcessor",
    "BadgeNotifier",
    "BadgeStatsService",
    "NullBadgeNotifier",
    "ProgressStore",
    "ProgressUpdate",
    "RedisBadgeNotifier",
]
