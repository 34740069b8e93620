"""Celery tasks package."""

from app.tasks import badges

__all__ = ["badges"]
