"""Notification, preference and mention API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_current_actor, http_error, require_auth
from app.db.session import get_db
from app.models.user import User
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
from app.services.context import ActorContext
from app.services.errors import ServiceError
from app.services.mentions import notify_mentions
from app.services.notifications import (
    get_preferences,
    list_notifications,
    mark_read,
    update_preferences,
)

router = APIRouter()


@router.get("", response_model=NotificationListResponse)
def api_list_notifications(
    unread_only: bool = Query(False),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> NotificationListResponse:
    """Current-workspace notifications plus pending invites, newest first."""
    items, unread = list_notifications(db, actor, unread_only=unread_only)
    notifications = []
    for n in items:
        read = NotificationRead.model_validate(n)
        if n.invite is not None:
            read.invite_token = n.invite.token
        notifications.append(read)
    return NotificationListResponse(notifications=notifications, unread_count=unread)


@router.put("", response_model=MarkReadResponse)
def api_mark_read(
    data: MarkReadRequest,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> MarkReadResponse:
    updated = mark_read(db, actor, data.notification_ids)
    return MarkReadResponse(updated=updated)


@router.post("/mentions", response_model=MentionNotifyResponse, status_code=201)
def api_notify_mentions(
    data: MentionNotifyRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_auth),
    actor: ActorContext = Depends(get_current_actor),
) -> MentionNotifyResponse:
    """Notify users @mentioned in a piece of text."""
    try:
        created = notify_mentions(
            db,
            actor,
            text=data.text,
            context_type=data.context_type,
            context_id=data.context_id,
            context_name=data.context_name,
            author_name=user.display_name,
        )
    except ServiceError as exc:
        raise http_error(exc) from exc
    return MentionNotifyResponse(created=len(created))


@router.get("/preferences", response_model=PreferencesRead)
def api_get_preferences(
    db: Session = Depends(get_db),
    user: User = Depends(require_auth),
) -> PreferencesRead:
    return PreferencesRead.model_validate(get_preferences(db, user.id))


@router.put("/preferences", response_model=PreferencesRead)
def api_update_preferences(
    data: PreferencesUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_auth),
) -> PreferencesRead:
    prefs = update_preferences(db, user.id, data.model_dump(exclude_unset=True))
    return PreferencesRead.model_validate(prefs)
