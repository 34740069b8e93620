"""Shared API dependencies."""
from __future__ import annotations

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.config import settings
from app.core.security import InvalidTokenError, decode_token
from app.db.session import get_db
from app.schemas import CurrentUser, TokenPayload
from app.services.badge_catalog import BadgeCatalog
from app.services.badge_events import BadgeEventProcessor
from app.services.badge_notifications import BadgeNotifier, get_notifier
from app.services.badge_progress import ProgressStore
from app.services.badge_stats import BadgeStatsService

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> CurrentUser:
    """Resolve the caller from the identity provider's bearer token."""

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None or not credentials.credentials:
        raise credentials_exception

    try:
        payload = decode_token(credentials.credentials)
        token_data = TokenPayload.model_validate(payload)
    except (InvalidTokenError, ValidationError, ValueError, KeyError) as exc:
        raise credentials_exception from exc

    return CurrentUser(id=token_data.sub, role=token_data.role)


def require_service_role(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Allow only trusted backend callers (event ingestion, catalog admin)."""

    if not current_user.is_service(settings.SERVICE_ROLE):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Service role required",
        )
    return current_user


def get_badge_catalog(db: Session = Depends(get_db)) -> BadgeCatalog:
    return BadgeCatalog(db)


def get_progress_store(db: Session = Depends(get_db)) -> ProgressStore:
    return ProgressStore(db)


def get_event_processor(
    catalog: BadgeCatalog = Depends(get_badge_catalog),
    store: ProgressStore = Depends(get_progress_store),
    notifier: BadgeNotifier = Depends(get_notifier),
) -> BadgeEventProcessor:
    """Assemble the event processor with request-scoped dependencies."""

    return BadgeEventProcessor(catalog, store, notifier)


def get_stats_service(
    catalog: BadgeCatalog = Depends(get_badge_catalog),
    store: ProgressStore = Depends(get_progress_store),
) -> BadgeStatsService:
    return BadgeStatsService(catalog, store)
