"""Workspace invite lifecycle: pending -> accepted | expired.

Expiry is derived, not scheduled: ``effective_status`` is applied at every
read and accept, and the stored ``expired`` status is a write-back of that
derived value.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models import Notification, User, UserWorkspace, Workspace, WorkspaceInvite
from app.models.enums import InviteStatus, NotificationType, WorkspaceRole
from app.services.context import ActorContext
from app.services.errors import (
    AlreadyMemberError,
    ConflictError,
    EmailMismatchError,
    ExpiredError,
    ForbiddenError,
    InviteNotPendingError,
    NotFoundError,
)
from app.services.notifications import create_notification
from app.services.timeutil import as_utc, utc_now
from app.services.workspaces.membership import get_active_membership

logger = logging.getLogger(__name__)


def effective_status(invite: WorkspaceInvite, now: datetime) -> InviteStatus:
    """Stored status, except a pending invite past its expiry reads as expired."""
    status = InviteStatus(invite.status)
    if status is InviteStatus.pending and as_utc(now) > as_utc(invite.expires_at):
        return InviteStatus.expired
    return status


def invite_url(token: str) -> str:
    return f"{get_settings().app_url.rstrip('/')}/invite/{token}"


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _expire(db: Session, invite: WorkspaceInvite) -> None:
    invite.status = InviteStatus.expired.value
    db.commit()
    logger.info("Invite %s expired", invite.id)


def _require_manager(actor: ActorContext) -> None:
    if not actor.can_manage_members:
        raise ForbiddenError("Only owners and admins can manage invites")


def create_invite(
    db: Session,
    actor: ActorContext,
    email: str,
    role: str = WorkspaceRole.member.value,
    now: datetime | None = None,
) -> tuple[WorkspaceInvite, str]:
    """Invite ``email`` to the actor's workspace. Returns (invite, invite_url)."""
    _require_manager(actor)
    role = WorkspaceRole(role).value
    if role == WorkspaceRole.owner.value:
        raise ForbiddenError("Invites cannot grant the owner role")
    now = now or utc_now()
    email = _normalize_email(email)

    invitee = db.query(User).filter(func.lower(User.email) == email).first()
    if invitee is not None and get_active_membership(db, invitee.id, actor.workspace_id):
        raise ConflictError("User is already a member of this workspace")

    pending = (
        db.query(WorkspaceInvite)
        .filter(
            WorkspaceInvite.workspace_id == actor.workspace_id,
            func.lower(WorkspaceInvite.email) == email,
            WorkspaceInvite.status == InviteStatus.pending.value,
        )
        .all()
    )
    for existing in pending:
        if effective_status(existing, now) is InviteStatus.pending:
            raise ConflictError("An invite has already been sent to this email")
        existing.status = InviteStatus.expired.value

    workspace = db.get(Workspace, actor.workspace_id)
    if workspace is None:
        raise NotFoundError("Workspace not found")
    inviter = db.get(User, actor.user_id)

    invite = WorkspaceInvite(
        email=email,
        role=role,
        workspace_id=actor.workspace_id,
        invited_by_id=actor.user_id,
        status=InviteStatus.pending.value,
        expires_at=now + timedelta(days=get_settings().invite_expiry_days),
    )
    db.add(invite)
    db.flush()

    if invitee is not None:
        inviter_name = inviter.display_name if inviter else "Someone"
        create_notification(
            db,
            user_id=invitee.id,
            type=NotificationType.workspace_invite,
            title="Workspace Invitation",
            message=f"{inviter_name} invited you to join {workspace.name}",
            workspace_id=actor.workspace_id,
            invite_id=invite.id,
        )
    db.commit()
    db.refresh(invite)
    logger.info(
        "Invite %s created for workspace %s (role=%s) by user %s",
        invite.id,
        actor.workspace_id,
        role,
        actor.user_id,
    )
    return invite, invite_url(invite.token)


def list_pending_invites(
    db: Session, actor: ActorContext, now: datetime | None = None
) -> list[WorkspaceInvite]:
    """Pending, unexpired invites for the actor's workspace, newest first."""
    _require_manager(actor)
    now = now or utc_now()
    rows = (
        db.query(WorkspaceInvite)
        .filter(
            WorkspaceInvite.workspace_id == actor.workspace_id,
            WorkspaceInvite.status == InviteStatus.pending.value,
        )
        .order_by(WorkspaceInvite.created_at.desc(), WorkspaceInvite.id.desc())
        .all()
    )
    return [i for i in rows if effective_status(i, now) is InviteStatus.pending]


def cancel_invite(db: Session, actor: ActorContext, invite_id: int) -> None:
    """Delete a pending invite. Accepted or expired invites stay as history."""
    _require_manager(actor)
    invite = (
        db.query(WorkspaceInvite)
        .filter(
            WorkspaceInvite.id == invite_id,
            WorkspaceInvite.workspace_id == actor.workspace_id,
        )
        .first()
    )
    if invite is None:
        raise NotFoundError("Invite not found")
    if invite.status != InviteStatus.pending.value:
        raise InviteNotPendingError(invite.status)
    db.query(Notification).filter(Notification.invite_id == invite.id).delete(
        synchronize_session=False
    )
    db.delete(invite)
    db.commit()
    logger.info("Invite %s cancelled by user %s", invite_id, actor.user_id)


def get_invite_by_token(
    db: Session, token: str, now: datetime | None = None
) -> WorkspaceInvite:
    """Look up an invite for display. Expired invites raise ExpiredError.

    A pending invite found past its expiry is persisted as expired first.
    """
    invite = db.query(WorkspaceInvite).filter(WorkspaceInvite.token == token).first()
    if invite is None:
        raise NotFoundError("Invite not found")
    status = effective_status(invite, now or utc_now())
    if status is InviteStatus.expired:
        if invite.status != InviteStatus.expired.value:
            _expire(db, invite)
        raise ExpiredError("This invite has expired")
    return invite


def accept_invite(
    db: Session, user: User, token: str, now: datetime | None = None
) -> UserWorkspace:
    """Join the invite's workspace as ``user``. Returns the new membership.

    Already being an active member closes the invite out as accepted and
    raises AlreadyMemberError.
    """
    now = now or utc_now()
    invite = db.query(WorkspaceInvite).filter(WorkspaceInvite.token == token).first()
    if invite is None:
        raise NotFoundError("Invalid invite token")
    if invite.status != InviteStatus.pending.value:
        raise InviteNotPendingError(invite.status)
    if effective_status(invite, now) is InviteStatus.expired:
        _expire(db, invite)
        raise ExpiredError("This invite has expired")
    if invite.email and _normalize_email(invite.email) != _normalize_email(user.email):
        logger.warning("User %s tried to accept invite %s sent to another email", user.id, invite.id)
        raise EmailMismatchError("This invite was sent to a different email address")

    if get_active_membership(db, user.id, invite.workspace_id) is not None:
        invite.status = InviteStatus.accepted.value
        db.commit()
        raise AlreadyMemberError("You are already a member of this workspace")

    membership = UserWorkspace(
        user_id=user.id,
        workspace_id=invite.workspace_id,
        role=invite.role,
        joined_at=now,
    )
    try:
        db.add(membership)
        invite.status = InviteStatus.accepted.value
        if user.current_workspace_id is None:
            user.current_workspace_id = invite.workspace_id
        db.flush()
        create_notification(
            db,
            user_id=invite.invited_by_id,
            type=NotificationType.invite_accepted,
            title="Invitation Accepted",
            message=f"{user.display_name} has joined {invite.workspace.name}",
            workspace_id=invite.workspace_id,
            invite_id=invite.id,
        )
        db.commit()
    except IntegrityError as exc:
        # A concurrent acceptance created the active row first
        db.rollback()
        raise AlreadyMemberError("You are already a member of this workspace") from exc
    db.refresh(membership)
    logger.info(
        "Invite %s accepted: user %s joined workspace %s as %s",
        invite.id,
        user.id,
        invite.workspace_id,
        invite.role,
    )
    return membership
