"""Authentication related schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class TokenPayload(BaseModel):
    """Claims read from identity-provider access tokens."""

    sub: str = Field(min_length=1)
    exp: datetime
    role: str = "authenticated"


class CurrentUser(BaseModel):
    """Authenticated caller resolved from the bearer token."""

    id: str
    role: str

    def is_service(self, service_role: str) -> bool:
        return self.role == service_role
