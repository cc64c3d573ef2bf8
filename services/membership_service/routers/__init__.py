"""Membership service routers."""

from services.membership_service.routers.admin import router as admin_router
from services.membership_service.routers.member import router as membership_router

__all__ = [
    "admin_router",
    "membership_router",
]
