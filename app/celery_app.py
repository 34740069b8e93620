"""Celery application for asynchronous badge event ingestion."""
from __future__ import annotations

from celery import Celery

from app.config import settings

BADGE_QUEUE = "badges"


def _redis_fallback(url) -> str:
    return str(url if url is not None else settings.REDIS_URL)


celery_app = Celery(
    "quest_badges",
    broker=_redis_fallback(settings.CELERY_BROKER_URL),
    backend=_redis_fallback(settings.CELERY_RESULT_BACKEND),
    include=["app.tasks.badges"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_default_queue=BADGE_QUEUE,
    task_routes={"app.tasks.badges.*": {"queue": BADGE_QUEUE}},
    # Events are acknowledged only after their progress is stored.
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=60,
    task_soft_time_limit=45,
    worker_prefetch_multiplier=1,
)

__all__ = ["BADGE_QUEUE", "celery_app"]
