"""Workspace membership and invite rules."""

from app.services.workspaces.invites import (
    accept_invite,
    cancel_invite,
    create_invite,
    effective_status,
    get_invite_by_token,
    invite_url,
    list_pending_invites,
)
from app.services.workspaces.membership import (
    get_active_membership,
    get_actor_context,
    list_active_members,
    membership_status,
    remove_member,
)
from app.services.workspaces.workspaces import (
    create_workspace_for_user,
    list_user_workspaces,
    rename_workspace,
    resolve_current_workspace,
    slugify,
    switch_workspace,
    unique_slug,
)

__all__ = [
    "accept_invite",
    "cancel_invite",
    "create_invite",
    "create_workspace_for_user",
    "effective_status",
    "get_active_membership",
    "get_actor_context",
    "get_invite_by_token",
    "invite_url",
    "list_active_members",
    "list_pending_invites",
    "list_user_workspaces",
    "membership_status",
    "remove_member",
    "rename_workspace",
    "resolve_current_workspace",
    "slugify",
    "switch_workspace",
    "unique_slug",
]
