"""Database models package."""
from app.db.models.badge import Badge, UserBadgeProgress

__all__ = [
    "Badge",
    "UserBadgeProgress",
]
