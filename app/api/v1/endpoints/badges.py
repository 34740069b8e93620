"""Badge catalog, evaluation and event ingestion endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Body, Depends, status

from app.api import deps
from app.schemas import (
    BadgeCreate,
    BadgeEvaluateResponse,
    BadgeEventResponse,
    BadgeRead,
    BadgeUpdate,
    BadgeWithProgress,
    CurrentUser,
)
from app.services.badge_catalog import BadgeCatalog
from app.services.badge_events import BadgeEventProcessor
from app.services.badge_progress import ProgressStore
from app.services.badge_stats import BadgeStatsService

router = APIRouter(prefix="/badges", tags=["badges"])


@router.get("", response_model=list[BadgeRead])
def list_badges(
    *,
    catalog: BadgeCatalog = Depends(deps.get_badge_catalog),
    current_user: CurrentUser = Depends(deps.get_current_user),
) -> list[BadgeRead]:
    """Return the badge catalog visible to the caller, rarest first."""

    return [
        BadgeRead.model_validate(badge)
        for badge in catalog.visible_badges(current_user.id)
    ]


@router.post("/evaluate", response_model=BadgeEvaluateResponse)
def evaluate_badges(
    *,
    catalog: BadgeCatalog = Depends(deps.get_badge_catalog),
    store: ProgressStore = Depends(deps.get_progress_store),
    current_user: CurrentUser = Depends(deps.get_current_user),
) -> BadgeEvaluateResponse:
    """Ensure the caller has a progress row for every badge.

    Historical activity is not replayed; progress only moves with live events.
    """

    badge_ids = [badge.id for badge in catalog.list_badges()]
    created = store.ensure_rows(current_user.id, badge_ids)
    return BadgeEvaluateResponse(ok=True, created=created)


@router.post("/events", response_model=BadgeEventResponse)
def ingest_event(
    *,
    payload: dict = Body(..., description="Trigger event, discriminated by ``kind``"),
    processor: BadgeEventProcessor = Depends(deps.get_event_processor),
    _: CurrentUser = Depends(deps.require_service_role),
) -> BadgeEventResponse:
    """Process a trigger event reported by another backend component."""

    unlocks = processor.process_payload(payload)
    return BadgeEventResponse(newly_unlocked=unlocks, total_unlocked=len(unlocks))


@router.post("", response_model=BadgeRead, status_code=status.HTTP_201_CREATED)
def create_badge(
    *,
    badge_in: BadgeCreate,
    catalog: BadgeCatalog = Depends(deps.get_badge_catalog),
    _: CurrentUser = Depends(deps.require_service_role),
) -> BadgeRead:
    return BadgeRead.model_validate(catalog.create_badge(badge_in))


@router.get("/{badge_id}", response_model=BadgeWithProgress)
def get_badge(
    *,
    badge_id: str,
    stats: BadgeStatsService = Depends(deps.get_stats_service),
    current_user: CurrentUser = Depends(deps.get_current_user),
) -> BadgeWithProgress:
    """Return one badge together with the caller's progress."""

    return stats.get_badge_with_progress(current_user.id, badge_id)


@router.patch("/{badge_id}", response_model=BadgeRead)
def update_badge(
    *,
    badge_id: str,
    changes: BadgeUpdate,
    catalog: BadgeCatalog = Depends(deps.get_badge_catalog),
    _: CurrentUser = Depends(deps.require_service_role),
) -> BadgeRead:
    return BadgeRead.model_validate(catalog.update_badge(badge_id, changes))


@router.delete("/{badge_id}", status_code=status.HTTP_204_NO_CONTENT)
def retire_badge(
    *,
    badge_id: str,
    catalog: BadgeCatalog = Depends(deps.get_badge_catalog),
    _: CurrentUser = Depends(deps.require_service_role),
) -> None:
    """Retire a badge; existing progress rows are preserved."""

    catalog.retire_badge(badge_id)
