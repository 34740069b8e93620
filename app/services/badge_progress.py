"""Per-user badge progress with atomic, monotonic unlocks."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random,
)

from app.config import settings
from app.db.models.badge import Badge, UserBadgeProgress
from app.utils.exceptions import (
    EventValidationError,
    ProgressConflictError,
    StorageUnavailableError,
)


@dataclass
class ProgressUpdate:
    """Outcome of a single ``apply_delta`` call."""

    record: UserBadgeProgress
    just_unlocked: bool


def _log_conflict(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    details = getattr(exc, "details", {})
    logger.warning(
        "Progress write conflicted, retrying",
        attempt=retry_state.attempt_number,
        **details,
    )


class ProgressStore:
    """Owns ``user_badge_progress``: reads, lazy creation and the single mutation path.

    Every write is a compare-and-swap on the row ``version``: the row is read,
    the new state is computed in Python, and the UPDATE only applies when the
    version is still the one that was read. A lost race surfaces as
    ``ProgressConflictError`` and the whole read-compute-write is retried, so
    two concurrent increments at ``threshold - 1`` can never both report
    ``just_unlocked``.
    """

    def __init__(
        self,
        db: Session,
        *,
        max_attempts: int | None = None,
        retry_wait_seconds: float | None = None,
    ) -> None:
        self.db = db
        self.max_attempts = max_attempts or settings.BADGE_PROGRESS_MAX_ATTEMPTS
        self.retry_wait_seconds = (
            settings.BADGE_RETRY_WAIT_SECONDS
            if retry_wait_seconds is None
            else retry_wait_seconds
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_progress(self, user_id: str, badge_id: str) -> UserBadgeProgress:
        """Return the stored row, or an unsaved zero-valued default."""

        row = self._load(user_id, badge_id)
        if row is None:
            return UserBadgeProgress(
                user_id=user_id,
                badge_id=badge_id,
                progress=0,
                is_unlocked=False,
                unlocked_at=None,
                meta={},
                version=0,
            )
        return row

    def list_for_user(self, user_id: str) -> List[UserBadgeProgress]:
        try:
            return list(
                self.db.scalars(
                    select(UserBadgeProgress)
                    .where(UserBadgeProgress.user_id == user_id)
                    .order_by(UserBadgeProgress.badge_id)
                    .execution_options(populate_existing=True)
                )
            )
        except SQLAlchemyError as exc:
            raise StorageUnavailableError(
                "Failed to load badge progress", {"user_id": user_id}
            ) from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_random(0, self.retry_wait_seconds),
            retry=retry_if_exception_type(ProgressConflictError),
            before_sleep=_log_conflict,
            reraise=True,
        )

    def apply_delta(
        self,
        user_id: str,
        badge: Badge,
        delta: int = 1,
        metadata: Mapping[str, Any] | None = None,
    ) -> ProgressUpdate:
        """Advance progress by ``delta``, clamped to the badge threshold.

        Progress never goes down: when the threshold was lowered below the
        stored progress, the stored value is kept and the row unlocks.
        """

        if not user_id:
            raise EventValidationError("Progress update requires a user id")
        if delta < 1:
            raise EventValidationError(
                "Progress delta must be a positive integer", {"delta": delta}
            )

        try:
            return self._retrying()(
                self._apply_once, user_id, badge, delta, dict(metadata or {})
            )
        except ProgressConflictError as exc:
            logger.error(
                "Progress write kept conflicting",
                user_id=user_id,
                badge_id=badge.id,
                attempts=self.max_attempts,
            )
            raise StorageUnavailableError(
                "Badge progress could not be saved",
                {"user_id": user_id, "badge_id": badge.id},
            ) from exc

    def ensure_rows(self, user_id: str, badge_ids: Iterable[str]) -> int:
        """Create zero-progress rows for any badge the user has none for."""

        try:
            return self._retrying()(self._ensure_rows_once, user_id, set(badge_ids))
        except ProgressConflictError as exc:
            logger.error(
                "Progress row sync kept conflicting",
                user_id=user_id,
                attempts=self.max_attempts,
            )
            raise StorageUnavailableError(
                "Failed to sync badge progress rows", {"user_id": user_id}
            ) from exc

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _load(self, user_id: str, badge_id: str) -> UserBadgeProgress | None:
        try:
            return self.db.scalars(
                select(UserBadgeProgress)
                .where(
                    UserBadgeProgress.user_id == user_id,
                    UserBadgeProgress.badge_id == badge_id,
                )
                .execution_options(populate_existing=True)
            ).first()
        except SQLAlchemyError as exc:
            raise StorageUnavailableError(
                "Failed to load badge progress",
                {"user_id": user_id, "badge_id": badge_id},
            ) from exc

    def _ensure_rows_once(self, user_id: str, wanted: set[str]) -> int:
        try:
            existing = set(
                self.db.scalars(
                    select(UserBadgeProgress.badge_id).where(
                        UserBadgeProgress.user_id == user_id
                    )
                )
            )
            missing = sorted(wanted - existing)
            for badge_id in missing:
                self.db.add(
                    UserBadgeProgress(
                        user_id=user_id,
                        badge_id=badge_id,
                        progress=0,
                        is_unlocked=False,
                        meta={},
                        version=0,
                    )
                )
            self.db.commit()
        except IntegrityError as exc:
            # A concurrent event or sync created some of the rows first.
            self.db.rollback()
            raise ProgressConflictError(
                "Progress rows created concurrently", {"user_id": user_id}
            ) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageUnavailableError(
                "Failed to sync badge progress rows", {"user_id": user_id}
            ) from exc
        return len(missing)

    def _apply_once(
        self, user_id: str, badge: Badge, delta: int, metadata: dict[str, Any]
    ) -> ProgressUpdate:
        key = {"user_id": user_id, "badge_id": badge.id}
        threshold = badge.threshold
        now = datetime.now(timezone.utc)

        try:
            current = self._load(user_id, badge.id)
            if current is None:
                progress = min(delta, threshold)
                unlocked = progress >= threshold
                row = UserBadgeProgress(
                    user_id=user_id,
                    badge_id=badge.id,
                    progress=progress,
                    is_unlocked=unlocked,
                    unlocked_at=now if unlocked else None,
                    progress_updated_at=now,
                    meta=metadata,
                    version=1,
                )
                self.db.add(row)
                self.db.commit()
                self.db.expunge(row)
                return ProgressUpdate(
                    record=self._load(user_id, badge.id) or row, just_unlocked=unlocked
                )

            if current.is_unlocked:
                # Unlock is final; later events change nothing.
                return ProgressUpdate(record=current, just_unlocked=False)

            progress = max(current.progress, min(current.progress + delta, threshold))
            unlocked = progress >= threshold
            merged = {**(current.meta or {}), **metadata}
            result = self.db.execute(
                update(UserBadgeProgress)
                .where(
                    UserBadgeProgress.user_id == user_id,
                    UserBadgeProgress.badge_id == badge.id,
                    UserBadgeProgress.version == current.version,
                )
                .values(
                    {
                        UserBadgeProgress.progress: progress,
                        UserBadgeProgress.is_unlocked: unlocked,
                        UserBadgeProgress.unlocked_at: now if unlocked else None,
                        UserBadgeProgress.progress_updated_at: now,
                        UserBadgeProgress.meta: merged,
                        UserBadgeProgress.version: current.version + 1,
                    }
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.rollback()
                raise ProgressConflictError("Stale progress version", key)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ProgressConflictError("Progress row created concurrently", key) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageUnavailableError("Failed to save badge progress", key) from exc

        record = self._load(user_id, badge.id)
        return ProgressUpdate(record=record or current, just_unlocked=unlocked)


__all__ = ["ProgressStore", "ProgressUpdate"]
