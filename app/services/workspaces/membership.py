"""Membership rules: actor resolution, leave/remove, member listing."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy import case
from sqlalchemy.orm import Session, joinedload

from app.models import User, UserWorkspace
from app.models.enums import ROLE_RANK, NotificationType, WorkspaceRole
from app.services.context import ActorContext
from app.services.errors import ForbiddenError, NotFoundError
from app.services.notifications import create_notification
from app.services.timeutil import utc_now

logger = logging.getLogger(__name__)


def get_active_membership(
    db: Session, user_id: int, workspace_id: uuid.UUID
) -> UserWorkspace | None:
    """The user's active membership row in the workspace, or None."""
    return (
        db.query(UserWorkspace)
        .filter(
            UserWorkspace.user_id == user_id,
            UserWorkspace.workspace_id == workspace_id,
            UserWorkspace.removed_at.is_(None),
        )
        .order_by(UserWorkspace.joined_at.asc(), UserWorkspace.id.asc())
        .first()
    )


def get_actor_context(db: Session, user_id: int, workspace_id: uuid.UUID) -> ActorContext:
    """Build the acting context; the user must be an active member."""
    membership = get_active_membership(db, user_id, workspace_id)
    if membership is None:
        raise ForbiddenError("You are not a member of this workspace")
    return ActorContext(user_id=user_id, workspace_id=workspace_id, role=membership.role)


def remove_member(db: Session, actor: ActorContext, target_user_id: int) -> UserWorkspace:
    """Leave the workspace (target is the actor) or remove another member.

    Owners can neither leave nor be removed. Only owners and admins remove
    others, and an admin cannot remove another admin. The membership row is
    soft-deleted; the removed user is notified when removed by someone else.
    """
    if actor.user_id == target_user_id:
        if actor.is_owner:
            raise ForbiddenError("Workspace owner cannot leave their own workspace")
        target = get_active_membership(db, actor.user_id, actor.workspace_id)
        if target is None:
            raise NotFoundError("Member not found in this workspace")
    else:
        if not actor.can_manage_members:
            raise ForbiddenError("You don't have permission to remove members")
        target = get_active_membership(db, target_user_id, actor.workspace_id)
        if target is None:
            raise NotFoundError("Member not found in this workspace")
        if target.role == WorkspaceRole.owner.value:
            raise ForbiddenError("Cannot remove the workspace owner")
        if actor.role == WorkspaceRole.admin.value and target.role == WorkspaceRole.admin.value:
            raise ForbiddenError("Admins cannot remove other admins")

    target.mark_removed(removed_by_id=actor.user_id, when=utc_now())

    user = db.get(User, target_user_id)
    if user is not None and user.current_workspace_id == actor.workspace_id:
        user.current_workspace_id = None

    if actor.user_id != target_user_id:
        create_notification(
            db,
            user_id=target_user_id,
            type=NotificationType.removed_from_workspace,
            title="Removed from Workspace",
            message="You have been removed from the workspace",
            workspace_id=actor.workspace_id,
        )
    db.commit()

    if actor.user_id == target_user_id:
        logger.info("User %s left workspace %s", target_user_id, actor.workspace_id)
    else:
        logger.info(
            "User %s removed from workspace %s by %s",
            target_user_id,
            actor.workspace_id,
            actor.user_id,
        )
    return target


def list_active_members(db: Session, workspace_id: uuid.UUID) -> list[UserWorkspace]:
    """Active memberships ordered owner, admin, member, then join time."""
    role_rank = case(ROLE_RANK, value=UserWorkspace.role, else_=len(ROLE_RANK))
    return (
        db.query(UserWorkspace)
        .options(joinedload(UserWorkspace.user))
        .filter(
            UserWorkspace.workspace_id == workspace_id,
            UserWorkspace.removed_at.is_(None),
        )
        .order_by(role_rank, UserWorkspace.joined_at.asc(), UserWorkspace.id.asc())
        .all()
    )


def membership_status(db: Session, user_id: int, workspace_id: uuid.UUID) -> dict[str, Any]:
    """Summary of the user's most recent membership row in the workspace."""
    row = (
        db.query(UserWorkspace)
        .filter(
            UserWorkspace.user_id == user_id,
            UserWorkspace.workspace_id == workspace_id,
        )
        .order_by(UserWorkspace.joined_at.desc(), UserWorkspace.id.desc())
        .first()
    )
    if row is None:
        return {
            "exists": False,
            "is_active": False,
            "is_removed": False,
            "removed_at": None,
            "role": None,
        }
    return {
        "exists": True,
        "is_active": row.is_active,
        "is_removed": not row.is_active,
        "removed_at": row.removed_at,
        "role": row.role,
    }
