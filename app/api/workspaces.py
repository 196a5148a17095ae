"""Workspace, membership and invite-management API routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_workspace_actor, http_error, require_auth
from app.db.session import get_db
from app.models.user import User
from app.schemas.invite import InviteCreate, InviteCreated, InviteListResponse, InviteRead
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
from app.services.context import ActorContext
from app.services.errors import ServiceError
from app.services.workspaces import (
    cancel_invite,
    create_invite,
    create_workspace_for_user,
    get_actor_context,
    list_active_members,
    list_pending_invites,
    list_user_workspaces,
    membership_status,
    remove_member,
    rename_workspace,
    switch_workspace,
)

router = APIRouter()


@router.get("", response_model=WorkspaceListResponse)
def api_list_workspaces(
    db: Session = Depends(get_db),
    user: User = Depends(require_auth),
) -> WorkspaceListResponse:
    """Workspaces the user is an active member of."""
    memberships = list_user_workspaces(db, user)
    items = [
        WorkspaceMembershipRead(
            workspace=WorkspaceRead.model_validate(m.workspace),
            role=m.role,
            joined_at=m.joined_at,
            is_current=m.workspace_id == user.current_workspace_id,
        )
        for m in memberships
    ]
    return WorkspaceListResponse(items=items, current_workspace_id=user.current_workspace_id)


@router.post("", response_model=WorkspaceRead, status_code=201)
def api_create_workspace(
    data: WorkspaceCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_auth),
) -> WorkspaceRead:
    """Create a workspace owned by the current user."""
    workspace = create_workspace_for_user(db, user, data.name)
    return WorkspaceRead.model_validate(workspace)


@router.post("/switch", response_model=WorkspaceRead)
def api_switch_workspace(
    data: WorkspaceSwitch,
    db: Session = Depends(get_db),
    user: User = Depends(require_auth),
) -> WorkspaceRead:
    try:
        workspace = switch_workspace(db, user, data.workspace_id)
    except ServiceError as exc:
        raise http_error(exc) from exc
    return WorkspaceRead.model_validate(workspace)


@router.put("/{workspace_id}", response_model=WorkspaceRead)
def api_rename_workspace(
    data: WorkspaceRename,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_workspace_actor),
) -> WorkspaceRead:
    """Rename the workspace (owner only); the slug is regenerated."""
    try:
        workspace = rename_workspace(db, actor, data.name)
    except ServiceError as exc:
        raise http_error(exc) from exc
    return WorkspaceRead.model_validate(workspace)


@router.get("/{workspace_id}/members", response_model=MemberListResponse)
def api_list_members(
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_workspace_actor),
) -> MemberListResponse:
    """Active members: owner first, then admins, then members."""
    members = [
        MemberRead(
            id=m.user.id,
            email=m.user.email,
            name=m.user.name,
            role=m.role,
            joined_at=m.joined_at,
        )
        for m in list_active_members(db, actor.workspace_id)
    ]
    return MemberListResponse(
        members=members,
        current_user_role=actor.role,
        current_user_id=actor.user_id,
    )


@router.delete("/{workspace_id}/members/{user_id}", status_code=204)
def api_remove_member(
    user_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_workspace_actor),
) -> None:
    """Leave the workspace (own id) or remove another member."""
    try:
        remove_member(db, actor, user_id)
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.get("/{workspace_id}/members/{user_id}/status", response_model=MembershipStatusRead)
def api_membership_status(
    workspace_id: uuid.UUID,
    user_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_auth),
) -> MembershipStatusRead:
    """Membership status of a user. Anyone may check their own; others need membership."""
    if user_id != user.id:
        try:
            get_actor_context(db, user.id, workspace_id)
        except ServiceError as exc:
            raise http_error(exc) from exc
    return MembershipStatusRead(**membership_status(db, user_id, workspace_id))


@router.get("/{workspace_id}/invites", response_model=InviteListResponse)
def api_list_invites(
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_workspace_actor),
) -> InviteListResponse:
    try:
        invites = list_pending_invites(db, actor)
    except ServiceError as exc:
        raise http_error(exc) from exc
    return InviteListResponse(items=[InviteRead.model_validate(i) for i in invites])


@router.post("/{workspace_id}/invites", response_model=InviteCreated, status_code=201)
def api_create_invite(
    data: InviteCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_workspace_actor),
) -> InviteCreated:
    """Invite an email address to the workspace (owners and admins)."""
    try:
        invite, url = create_invite(db, actor, data.email, data.role)
    except ServiceError as exc:
        raise http_error(exc) from exc
    return InviteCreated(**InviteRead.model_validate(invite).model_dump(), invite_url=url)


@router.delete("/{workspace_id}/invites/{invite_id}", status_code=204)
def api_cancel_invite(
    invite_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_workspace_actor),
) -> None:
    try:
        cancel_invite(db, actor, invite_id)
    except ServiceError as exc:
        raise http_error(exc) from exc
