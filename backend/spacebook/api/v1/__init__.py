"""Versioned API router."""

from fastapi import APIRouter

from . import health, reservations, spaces

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(spaces.router, prefix="/spaces", tags=["spaces"])
router.include_router(
    reservations.router, prefix="/reservations", tags=["reservations"]
)

__all__ = ["router"]
