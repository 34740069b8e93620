"""Badge catalog and per-user progress models."""
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.base import Base
from app.db.types import JSONDict


class Badge(Base):
    """Administrator-managed badge definition."""

    __tablename__ = "badges"
    __table_args__ = (
        CheckConstraint("points >= 0", name="ck_badges_points_non_negative"),
        CheckConstraint("threshold >= 1", name="ck_badges_threshold_positive"),
    )

    id = Column(String(100), primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, default="")
    icon = Column(String(255), default="")
    category = Column(String(40), nullable=False, index=True)
    rarity = Column(String(20), nullable=False, default="common")
    points = Column(Integer, nullable=False, default=0)

    # Unlock criteria
    event_type = Column(String(50), nullable=False, index=True)
    threshold = Column(Integer, nullable=False, default=1)
    criteria_filters = Column(JSONDict, nullable=False, default=dict)

    hidden = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    progress_rows = relationship("UserBadgeProgress", back_populates="badge")

    @property
    def criteria(self) -> dict:
        """Criteria in their wire shape: event type, threshold and filters."""

        return {
            "event_type": self.event_type,
            "threshold": self.threshold,
            "filters": dict(self.criteria_filters or {}),
        }


class UserBadgeProgress(Base):
    """Accumulated progress of one user toward one badge."""

    __tablename__ = "user_badge_progress"
    __table_args__ = (
        CheckConstraint("progress >= 0", name="ck_user_badge_progress_non_negative"),
    )

    user_id = Column(String(64), primary_key=True, index=True)
    badge_id = Column(
        String(100), ForeignKey("badges.id", ondelete="RESTRICT"), primary_key=True
    )

    progress = Column(Integer, nullable=False, default=0)
    is_unlocked = Column(Boolean, nullable=False, default=False)
    unlocked_at = Column(DateTime(timezone=True))
    progress_updated_at = Column(DateTime(timezone=True))
    # ``metadata`` is reserved on declarative classes
    meta = Column("metadata", JSONDict, nullable=False, default=dict)
    version = Column(Integer, nullable=False, default=0)

    badge = relationship("Badge", back_populates="progress_rows")
