"""Notification and NotificationPreference models."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.session import Base

if TYPE_CHECKING:
    from app.models.workspace_invite import WorkspaceInvite


class Notification(Base):
    """In-app notification for one user."""

    __tablename__ = "notifications"

    __table_args__ = (
        Index("ix_notifications_user_created", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    workspace_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=True
    )
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    invite_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("workspace_invites.id", ondelete="CASCADE"), nullable=True
    )
    deal_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("deals.id", ondelete="CASCADE"), nullable=True
    )
    # Mention context (activity, deal, contact, company)
    entity_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    entity_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    invite: Mapped[WorkspaceInvite | None] = relationship("WorkspaceInvite")


class NotificationPreference(Base):
    """Per-user notification switches. Missing row means everything on."""

    __tablename__ = "notification_preferences"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    activity_reminders: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    deal_updates: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    at_mentions: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
