"""Workspace creation, rename and current-workspace selection."""

from __future__ import annotations

import logging
import re
import uuid

from sqlalchemy.orm import Session, joinedload

from app.models import User, UserWorkspace, Workspace
from app.models.enums import WorkspaceRole
from app.services.context import ActorContext
from app.services.errors import ForbiddenError, NotFoundError
from app.services.timeutil import utc_now
from app.services.workspaces.membership import get_active_membership

logger = logging.getLogger(__name__)

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]")


def slugify(name: str) -> str:
    """Lowercase and replace every character outside [a-z0-9] with a hyphen."""
    return _NON_SLUG_CHARS.sub("-", name.lower())


def unique_slug(db: Session, name: str, exclude_id: uuid.UUID | None = None) -> str:
    """Slug for ``name``, suffixed -1, -2, ... until no other workspace holds it."""
    base = slugify(name)
    slug = base
    counter = 1
    while True:
        query = db.query(Workspace.id).filter(Workspace.slug == slug)
        if exclude_id is not None:
            query = query.filter(Workspace.id != exclude_id)
        if query.first() is None:
            return slug
        slug = f"{base}-{counter}"
        counter += 1


def create_workspace_for_user(db: Session, user: User, name: str | None = None) -> Workspace:
    """Create a workspace owned by ``user``; it becomes their current one if unset."""
    if not name or not name.strip():
        base = user.name or user.email.split("@")[0]
        name = f"{base}'s Workspace"
    name = name.strip()
    workspace = Workspace(name=name, slug=unique_slug(db, name))
    db.add(workspace)
    db.flush()
    db.add(
        UserWorkspace(
            user_id=user.id,
            workspace_id=workspace.id,
            role=WorkspaceRole.owner.value,
            joined_at=utc_now(),
        )
    )
    if user.current_workspace_id is None:
        user.current_workspace_id = workspace.id
    db.commit()
    db.refresh(workspace)
    logger.info("Workspace %s (%s) created for user %s", workspace.id, workspace.slug, user.id)
    return workspace


def rename_workspace(db: Session, actor: ActorContext, new_name: str) -> Workspace:
    """Owner-only rename. The slug is regenerated from the new name."""
    if not actor.is_owner:
        raise ForbiddenError("You don't have permission to edit this workspace")
    workspace = db.get(Workspace, actor.workspace_id)
    if workspace is None:
        raise NotFoundError("Workspace not found")
    new_name = new_name.strip()
    old_slug = workspace.slug
    workspace.name = new_name
    workspace.slug = unique_slug(db, new_name, exclude_id=workspace.id)
    db.commit()
    db.refresh(workspace)
    logger.info("Workspace %s renamed; slug %s -> %s", workspace.id, old_slug, workspace.slug)
    return workspace


def list_user_workspaces(db: Session, user: User) -> list[UserWorkspace]:
    """Active memberships of ``user`` (workspace loaded), earliest joined first."""
    return (
        db.query(UserWorkspace)
        .options(joinedload(UserWorkspace.workspace))
        .filter(UserWorkspace.user_id == user.id, UserWorkspace.removed_at.is_(None))
        .order_by(UserWorkspace.joined_at.asc(), UserWorkspace.id.asc())
        .all()
    )


def switch_workspace(db: Session, user: User, workspace_id: uuid.UUID) -> Workspace:
    if get_active_membership(db, user.id, workspace_id) is None:
        raise ForbiddenError("You don't have access to this workspace")
    user.current_workspace_id = workspace_id
    db.commit()
    logger.info("User %s switched to workspace %s", user.id, workspace_id)
    return db.get(Workspace, workspace_id)


def resolve_current_workspace(db: Session, user: User) -> UserWorkspace:
    """Active membership for the user's current workspace.

    Falls back to the earliest-joined active membership (and stores it) when
    the current one is unset or no longer active.
    """
    if user.current_workspace_id is not None:
        membership = get_active_membership(db, user.id, user.current_workspace_id)
        if membership is not None:
            return membership
    memberships = list_user_workspaces(db, user)
    if not memberships:
        raise ForbiddenError("You are not a member of any workspace")
    membership = memberships[0]
    user.current_workspace_id = membership.workspace_id
    db.commit()
    return membership
