"""Explicit acting-user context threaded into every rule-layer operation."""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from app.models.enums import MANAGER_ROLES, WorkspaceRole


@dataclass(frozen=True)
class ActorContext:
    """Who is acting, in which workspace, holding which role.

    Built at the request boundary from the authenticated user and their
    active membership; services trust it as given.
    """

    user_id: int
    workspace_id: uuid.UUID
    role: str

    @property
    def is_owner(self) -> bool:
        return self.role == WorkspaceRole.owner.value

    @property
    def can_manage_members(self) -> bool:
        return self.role in MANAGER_ROLES
