"""API router for version 1."""
from fastapi import APIRouter

from app.api.v1.endpoints import badges, users


api_router = APIRouter()
api_router.include_router(badges.router)
api_router.include_router(users.router)
