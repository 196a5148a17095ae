"""Workspace and membership schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _not_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Workspace name is required")
    return value


class WorkspaceCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, max_length=255)


class WorkspaceRename(BaseModel):
    """Body for renaming a workspace. Blank names are rejected."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., max_length=255)

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        return _not_blank(value)


class WorkspaceSwitch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    workspace_id: uuid.UUID


class WorkspaceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    slug: str
    created_at: datetime


class WorkspaceMembershipRead(BaseModel):
    """A workspace as seen by one of its members."""

    workspace: WorkspaceRead
    role: str
    joined_at: datetime
    is_current: bool = False


class WorkspaceListResponse(BaseModel):
    items: list[WorkspaceMembershipRead]
    current_workspace_id: Optional[uuid.UUID] = None


class MemberRead(BaseModel):
    """Active member row in the team listing."""

    id: int
    email: str
    name: Optional[str] = None
    role: str
    joined_at: datetime


class MemberListResponse(BaseModel):
    members: list[MemberRead]
    current_user_role: str
    current_user_id: int


class MembershipStatusRead(BaseModel):
    exists: bool
    is_active: bool
    is_removed: bool
    removed_at: Optional[datetime] = None
    role: Optional[str] = None
