"""Event processor: turns trigger events into progress and one-time unlocks."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Mapping

from loguru import logger

from app.schemas.badge import BadgeRead, BadgeUnlockEvent
from app.schemas.events import TriggerEvent, parse_trigger_event
from app.services.badge_catalog import BadgeCatalog
from app.services.badge_notifications import BadgeNotifier
from app.services.badge_progress import ProgressStore
from app.utils.exceptions import EventValidationError


class BadgeEventProcessor:
    """Apply a trigger event to every matching badge of the event's user."""

    def __init__(
        self,
        catalog: BadgeCatalog,
        store: ProgressStore,
        notifier: BadgeNotifier,
    ) -> None:
        self.catalog = catalog
        self.store = store
        self.notifier = notifier

    def process_payload(self, payload: Mapping[str, Any]) -> List[BadgeUnlockEvent]:
        """Validate a raw event mapping and process it."""

        return self.process_event(parse_trigger_event(payload))

    def process_event(self, event: TriggerEvent) -> List[BadgeUnlockEvent]:
        """Advance progress by one for each matching badge and emit new unlocks.

        Storage errors propagate unchanged and abort the call before any
        notification goes out. Notifier failures never propagate.
        """

        if not getattr(event, "user_id", None):
            raise EventValidationError("Trigger event is missing a user id")

        badges = self.catalog.badges_for_event(event)
        if not badges:
            logger.debug("No badges match event", event_kind=event.kind, user_id=event.user_id)
            return []

        metadata = event.payload()
        unlocks: List[BadgeUnlockEvent] = []
        for badge in badges:
            update = self.store.apply_delta(event.user_id, badge, 1, metadata)
            if not update.just_unlocked:
                continue
            unlocks.append(
                BadgeUnlockEvent(
                    user_id=event.user_id,
                    badge=BadgeRead.model_validate(badge),
                    timestamp=update.record.unlocked_at or datetime.now(timezone.utc),
                    metadata=metadata,
                )
            )
            logger.info(
                "Badge unlocked",
                user_id=event.user_id,
                badge_id=badge.id,
                event_kind=event.kind,
            )

        for unlock in unlocks:
            self._notify(unlock)
        return unlocks

    def _notify(self, unlock: BadgeUnlockEvent) -> None:
        try:
            self.notifier.emit(unlock)
        except Exception as exc:
            logger.warning(
                "Badge notification failed",
                user_id=unlock.user_id,
                badge_id=unlock.badge.id,
                error=str(exc),
            )


__all__ = ["BadgeEventProcessor"]
