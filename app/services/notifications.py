"""Notification service: create, list, mark-read, preferences, retention."""

from __future__ import annotations

import logging
import uuid
from datetime import timedelta

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, joinedload

from app.config import get_settings
from app.models import Notification, NotificationPreference
from app.models.enums import InviteStatus, NotificationType
from app.services.context import ActorContext
from app.services.timeutil import utc_now

logger = logging.getLogger(__name__)


def create_notification(
    db: Session,
    user_id: int,
    type: NotificationType | str,
    title: str,
    message: str,
    workspace_id: uuid.UUID | None = None,
    invite_id: int | None = None,
    deal_id: int | None = None,
    entity_type: str | None = None,
    entity_id: int | None = None,
) -> Notification:
    """Add a notification to the session and flush.

    The caller's commit persists it together with the change that caused it.
    """
    notification = Notification(
        user_id=user_id,
        type=NotificationType(type).value,
        title=title,
        message=message,
        workspace_id=workspace_id,
        invite_id=invite_id,
        deal_id=deal_id,
        entity_type=entity_type,
        entity_id=entity_id,
    )
    db.add(notification)
    db.flush()
    return notification


def list_notifications(
    db: Session,
    actor: ActorContext,
    unread_only: bool = False,
) -> tuple[list[Notification], int]:
    """Notifications for the current workspace plus invites from any workspace.

    Invite notifications whose invite is no longer effectively pending
    (accepted, cancelled, or past expiry even if not yet written back) are dropped.
    Returns (notifications newest first, unread count among them).
    """
    from app.services.workspaces.invites import effective_status

    limit = get_settings().notification_list_limit
    query = (
        db.query(Notification)
        .options(joinedload(Notification.invite))
        .filter(
            Notification.user_id == actor.user_id,
            or_(
                Notification.workspace_id == actor.workspace_id,
                Notification.type == NotificationType.workspace_invite.value,
            ),
        )
    )
    if unread_only:
        query = query.filter(Notification.read.is_(False))
    rows = query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()

    now = utc_now()
    visible = [
        n
        for n in rows
        if not (
            n.type == NotificationType.workspace_invite.value
            and n.invite is not None
            and effective_status(n.invite, now) is not InviteStatus.pending
        )
    ]
    unread = sum(1 for n in visible if not n.read)
    return visible, unread


def mark_read(
    db: Session,
    actor: ActorContext,
    notification_ids: list[int] | None = None,
) -> int:
    """Mark notifications read. Returns the number of rows updated.

    Specific ids may come from any workspace (mentions, invites) but must
    belong to the actor. Without ids, every unread notification in the
    current workspace is marked.
    """
    if notification_ids:
        criteria = and_(
            Notification.id.in_(notification_ids),
            Notification.user_id == actor.user_id,
        )
    else:
        criteria = and_(
            Notification.user_id == actor.user_id,
            Notification.workspace_id == actor.workspace_id,
            Notification.read.is_(False),
        )
    updated = (
        db.query(Notification)
        .filter(criteria)
        .update({Notification.read: True}, synchronize_session="fetch")
    )
    db.commit()
    return updated


def get_preferences(db: Session, user_id: int) -> NotificationPreference:
    """Return the user's preferences, creating the all-on default row on first read."""
    prefs = db.get(NotificationPreference, user_id)
    if prefs is None:
        prefs = NotificationPreference(
            user_id=user_id,
            activity_reminders=True,
            deal_updates=True,
            at_mentions=True,
        )
        db.add(prefs)
        db.commit()
        db.refresh(prefs)
    return prefs


def update_preferences(db: Session, user_id: int, updates: dict) -> NotificationPreference:
    """Apply the given switches (None values are ignored)."""
    prefs = get_preferences(db, user_id)
    for key, value in updates.items():
        if value is not None:
            setattr(prefs, key, value)
    db.commit()
    db.refresh(prefs)
    return prefs


def wants_mentions(db: Session, user_id: int) -> bool:
    """Mention notifications are on unless the user switched them off."""
    prefs = db.get(NotificationPreference, user_id)
    return prefs is None or prefs.at_mentions


def purge_read_notifications(db: Session, older_than_days: int | None = None) -> int:
    """Delete read notifications older than the retention window. Returns rows deleted."""
    days = older_than_days if older_than_days is not None else get_settings().notification_retention_days
    cutoff = utc_now() - timedelta(days=days)
    deleted = (
        db.query(Notification)
        .filter(Notification.read.is_(True), Notification.created_at < cutoff)
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info("Purged %d read notifications older than %d days", deleted, days)
    return deleted
