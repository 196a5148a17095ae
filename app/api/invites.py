"""Invite lookup and acceptance by token."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import http_error, require_auth
from app.db.session import get_db
from app.models.user import User
from app.schemas.invite import (
    InviteAcceptResponse,
    InviteInviter,
    InvitePublicRead,
    InviteWorkspace,
)
from app.services.errors import ServiceError
from app.services.workspaces import accept_invite, get_invite_by_token

router = APIRouter()


@router.get("/{token}", response_model=InvitePublicRead)
def api_get_invite(token: str, db: Session = Depends(get_db)) -> InvitePublicRead:
    """Invite details for the accept page. No authentication required."""
    try:
        invite = get_invite_by_token(db, token)
    except ServiceError as exc:
        raise http_error(exc) from exc
    return InvitePublicRead(
        id=invite.id,
        email=invite.email,
        role=invite.role,
        status=invite.status,
        expires_at=invite.expires_at,
        workspace=InviteWorkspace(id=invite.workspace.id, name=invite.workspace.name),
        invited_by=InviteInviter(
            id=invite.invited_by.id,
            name=invite.invited_by.name,
            email=invite.invited_by.email,
        ),
    )


@router.post("/{token}/accept", response_model=InviteAcceptResponse)
def api_accept_invite(
    token: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_auth),
) -> InviteAcceptResponse:
    """Join the invite's workspace as the authenticated user."""
    try:
        membership = accept_invite(db, user, token)
    except ServiceError as exc:
        raise http_error(exc) from exc
    workspace = membership.workspace
    return InviteAcceptResponse(
        workspace=InviteWorkspace(id=workspace.id, name=workspace.name),
        role=membership.role,
        message=f"Successfully joined {workspace.name}",
    )
