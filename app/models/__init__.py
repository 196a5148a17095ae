"""SQLAlchemy models."""

from app.models.company import Company, Contact
from app.models.deal import Deal, DealTransition
from app.models.notification import Notification, NotificationPreference
from app.models.user import User
from app.models.user_workspace import UserWorkspace
from app.models.workspace import Workspace
from app.models.workspace_invite import WorkspaceInvite

__all__ = [
    "Company",
    "Contact",
    "Deal",
    "DealTransition",
    "Notification",
    "NotificationPreference",
    "User",
    "UserWorkspace",
    "Workspace",
    "WorkspaceInvite",
]
