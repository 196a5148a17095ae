"""Notification, preference and mention schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    title: str
    message: str
    read: bool
    workspace_id: Optional[uuid.UUID] = None
    invite_id: Optional[int] = None
    deal_id: Optional[int] = None
    entity_type: Optional[str] = None
    entity_id: Optional[int] = None
    created_at: datetime
    invite_token: Optional[str] = None


class NotificationListResponse(BaseModel):
    notifications: list[NotificationRead]
    unread_count: int


class MarkReadRequest(BaseModel):
    """Omit ``notification_ids`` to mark every unread notification in the workspace."""

    model_config = ConfigDict(extra="forbid")

    notification_ids: Optional[list[int]] = None


class MarkReadResponse(BaseModel):
    updated: int


class MentionNotifyRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str = Field(..., min_length=1)
    context_type: Literal["activity", "deal", "contact", "company"]
    context_id: int
    context_name: str = Field(..., min_length=1, max_length=255)


class MentionNotifyResponse(BaseModel):
    created: int


class PreferencesRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    activity_reminders: bool
    deal_updates: bool
    at_mentions: bool


class PreferencesUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    activity_reminders: Optional[bool] = None
    deal_updates: Optional[bool] = None
    at_mentions: Optional[bool] = None
