"""Enumerated values stored as plain strings in the database."""

from __future__ import annotations

from enum import Enum


class WorkspaceRole(str, Enum):
    """Role a user holds inside a workspace."""

    owner = "owner"
    admin = "admin"
    member = "member"


# owner first, then admin, then member
ROLE_RANK: dict[str, int] = {
    WorkspaceRole.owner.value: 0,
    WorkspaceRole.admin.value: 1,
    WorkspaceRole.member.value: 2,
}

MANAGER_ROLES = frozenset({WorkspaceRole.owner.value, WorkspaceRole.admin.value})


class InviteStatus(str, Enum):
    """Workspace invite lifecycle. accepted and expired are terminal."""

    pending = "pending"
    accepted = "accepted"
    expired = "expired"


class DealStage(str, Enum):
    """Pipeline stages, in board order."""

    lead = "lead"
    qualified = "qualified"
    demo = "demo"
    trial = "trial"
    negotiation = "negotiation"
    closed_won = "closed-won"
    closed_lost = "closed-lost"


STAGE_ORDER: tuple[str, ...] = tuple(s.value for s in DealStage)


class NotificationType(str, Enum):
    workspace_invite = "workspace_invite"
    invite_accepted = "invite_accepted"
    removed_from_workspace = "removed_from_workspace"
    at_mention = "at_mention"
