"""API router aggregation."""

from fastapi import APIRouter

from unibulletin.api.announcements import router as announcements_router
from unibulletin.api.auth import router as auth_router
from unibulletin.api.health import router as health_router
from unibulletin.api.recipients import router as recipients_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(announcements_router)
api_router.include_router(recipients_router)

__all__ = ["api_router"]
