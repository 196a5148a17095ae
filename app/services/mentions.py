"""@mention parsing and mention notifications.

Stored text carries mentions as ``@[Display Name](user_id)``; the UI shows
them as ``@Display Name``.
"""

from __future__ import annotations

import logging
import re

from sqlalchemy.orm import Session

from app.models import Deal, Notification, UserWorkspace
from app.models.enums import NotificationType
from app.services.context import ActorContext
from app.services.errors import NotFoundError
from app.services.notifications import create_notification, wants_mentions

logger = logging.getLogger(__name__)

MENTION_RE = re.compile(r"@\[([^\]]+)\]\((\d+)\)")


def parse_mentions(text: str | None) -> list[int]:
    """User ids mentioned in ``text``, first occurrence order, no duplicates."""
    if not text:
        return []
    seen: list[int] = []
    for match in MENTION_RE.finditer(text):
        user_id = int(match.group(2))
        if user_id not in seen:
            seen.append(user_id)
    return seen


def format_mentions_for_display(text: str | None) -> str:
    """Replace ``@[Name](id)`` tokens with ``@Name``."""
    if not text:
        return ""
    return MENTION_RE.sub(r"@\1", text)


def notify_mentions(
    db: Session,
    actor: ActorContext,
    text: str,
    context_type: str,
    context_id: int,
    context_name: str,
    author_name: str,
    message: str | None = None,
) -> list[Notification]:
    """Create at_mention notifications for users mentioned in ``text``.

    Skips the author, users who are not active members of the workspace, and
    users who turned mention notifications off. A ``deal`` context must be a
    deal in the actor's workspace (NotFoundError otherwise). Commits.
    """
    if context_type == "deal":
        deal = (
            db.query(Deal.id)
            .filter(Deal.id == context_id, Deal.workspace_id == actor.workspace_id)
            .first()
        )
        if deal is None:
            raise NotFoundError("Deal not found")

    mentioned = [uid for uid in parse_mentions(text) if uid != actor.user_id]
    if not mentioned:
        return []

    members = {
        row.user_id
        for row in db.query(UserWorkspace.user_id).filter(
            UserWorkspace.workspace_id == actor.workspace_id,
            UserWorkspace.user_id.in_(mentioned),
            UserWorkspace.removed_at.is_(None),
        )
    }

    created: list[Notification] = []
    for user_id in mentioned:
        if user_id not in members or not wants_mentions(db, user_id):
            continue
        created.append(
            create_notification(
                db,
                user_id=user_id,
                type=NotificationType.at_mention,
                title=f"{author_name} mentioned you",
                message=message or f"You were mentioned in {context_name}",
                workspace_id=actor.workspace_id,
                deal_id=context_id if context_type == "deal" else None,
                entity_type=context_type,
                entity_id=context_id,
            )
        )
    db.commit()
    logger.info(
        "Created %d mention notifications for %s %s", len(created), context_type, context_id
    )
    return created
