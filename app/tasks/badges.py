"""Celery tasks for asynchronous badge event ingestion."""
from __future__ import annotations

from typing import Any

from loguru import logger

from app.celery_app import celery_app
from app.db.session import SessionLocal
from app.services.badge_catalog import BadgeCatalog
from app.services.badge_events import BadgeEventProcessor
from app.services.badge_notifications import get_notifier
from app.services.badge_progress import ProgressStore
from app.utils.exceptions import EventValidationError


@celery_app.task(name="app.tasks.badges.process_badge_event")
def process_badge_event(payload: dict[str, Any]) -> dict[str, Any]:
    """Apply a trigger event published by another service."""

    db = SessionLocal()
    try:
        processor = BadgeEventProcessor(BadgeCatalog(db), ProgressStore(db), get_notifier())
        try:
            unlocks = processor.process_payload(payload)
        except EventValidationError as exc:
            # Malformed events are dropped, not retried.
            logger.warning("Rejected badge event", error=exc.message, details=exc.details)
            return {"accepted": False, "error": exc.message}

        logger.info(
            "Badge event processed",
            event_kind=payload.get("kind"),
            user_id=payload.get("user_id"),
            unlocked_count=len(unlocks),
        )
        return {
            "accepted": True,
            "user_id": payload.get("user_id"),
            "unlocked_badge_ids": [unlock.badge.id for unlock in unlocks],
        }
    except Exception as exc:
        logger.error("Badge event processing failed", error=str(exc))
        raise
    finally:
        db.close()


@celery_app.task(name="app.tasks.badges.sync_user_badges")
def sync_user_badges(user_id: str) -> dict[str, Any]:
    """Ensure a user has a progress row for every active badge."""

    db = SessionLocal()
    try:
        badge_ids = [badge.id for badge in BadgeCatalog(db).list_badges()]
        created = ProgressStore(db).ensure_rows(user_id, badge_ids)
        logger.info("User badge rows synced", user_id=user_id, created=created)
        return {"user_id": user_id, "created": created}
    except Exception as exc:
        logger.error("Badge row sync failed", user_id=user_id, error=str(exc))
        raise
    finally:
        db.close()
