"""Pydantic schemas for request/response validation."""

from app.schemas.auth import LoginRequest, MeResponse, TokenResponse, UserRead
from app.schemas.deal import (
    DealCreate,
    DealList,
    DealMove,
    DealRead,
    DealTransitionRead,
    DealUpdate,
    PipelineResponse,
    PipelineStage,
)
from app.schemas.invite import (
    InviteAcceptResponse,
    InviteCreate,
    InviteCreated,
    InviteListResponse,
    InvitePublicRead,
    InviteRead,
)
from app.schemas.notification import (
    MarkReadRequest,
    MarkReadResponse,
    MentionNotifyRequest,
    MentionNotifyResponse,
    NotificationListResponse,
    NotificationRead,
    PreferencesRead,
    PreferencesUpdate,
)
from app.schemas.workspace import (
    MemberListResponse,
    MemberRead,
    MembershipStatusRead,
    WorkspaceCreate,
    WorkspaceListResponse,
    WorkspaceMembershipRead,
    WorkspaceRead,
    WorkspaceRename,
    WorkspaceSwitch,
)

__all__ = [
    # Auth
    "LoginRequest",
    "MeResponse",
    "TokenResponse",
    "UserRead",
    # Deals
    "DealCreate",
    "DealUpdate",
    "DealMove",
    "DealRead",
    "DealList",
    "DealTransitionRead",
    "PipelineStage",
    "PipelineResponse",
    # Invites
    "InviteCreate",
    "InviteRead",
    "InviteCreated",
    "InviteListResponse",
    "InvitePublicRead",
    "InviteAcceptResponse",
    # Notifications
    "NotificationRead",
    "NotificationListResponse",
    "MarkReadRequest",
    "MarkReadResponse",
    "MentionNotifyRequest",
    "MentionNotifyResponse",
    "PreferencesRead",
    "PreferencesUpdate",
    # Workspaces
    "WorkspaceCreate",
    "WorkspaceRename",
    "WorkspaceSwitch",
    "WorkspaceRead",
    "WorkspaceMembershipRead",
    "WorkspaceListResponse",
    "MemberRead",
    "MemberListResponse",
    "MembershipStatusRead",
]
