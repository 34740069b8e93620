"""API endpoint modules for v1."""

from app.api.v1.endpoints import badges, users

__all__ = ["badges", "users"]
