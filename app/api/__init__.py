"""API routes."""

from app.api.auth import router as auth_router
from app.api.deals import router as deals_router
from app.api.invites import router as invites_router
from app.api.notifications import router as notifications_router
from app.api.workspaces import router as workspaces_router

__all__ = [
    "auth_router",
    "deals_router",
    "invites_router",
    "notifications_router",
    "workspaces_router",
]
