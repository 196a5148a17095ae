"""Workspace invite schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InviteCreate(BaseModel):
    """Owner role cannot be granted by invite."""

    model_config = ConfigDict(extra="forbid")

    email: str = Field(..., min_length=3, max_length=255)
    role: Literal["admin", "member"] = "member"

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        value = value.strip().lower()
        local, sep, domain = value.partition("@")
        if not sep or not local or "." not in domain:
            raise ValueError("Invalid email address")
        return value


class InviteRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    role: str
    status: str
    workspace_id: uuid.UUID
    invited_by_id: int
    expires_at: datetime
    created_at: datetime


class InviteCreated(InviteRead):
    invite_url: str


class InviteListResponse(BaseModel):
    items: list[InviteRead]


class InviteWorkspace(BaseModel):
    id: uuid.UUID
    name: str


class InviteInviter(BaseModel):
    id: int
    name: Optional[str] = None
    email: str


class InvitePublicRead(BaseModel):
    """Invite details shown on the accept page (no token echo)."""

    id: int
    email: str
    role: str
    status: str
    expires_at: datetime
    workspace: InviteWorkspace
    invited_by: InviteInviter


class InviteAcceptResponse(BaseModel):
    workspace: InviteWorkspace
    role: str
    message: str
