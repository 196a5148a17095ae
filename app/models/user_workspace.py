"""UserWorkspace model: user membership in workspaces.

Rows are never deleted. Leaving or being removed stamps ``removed_at``;
rejoining later creates a new row, so history is preserved. At most one
active (``removed_at IS NULL``) row exists per (user, workspace).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Union

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.session import Base

if TYPE_CHECKING:
    from app.models.user import User
    from app.models.workspace import Workspace


@dataclass(frozen=True)
class Active:
    joined_at: datetime


@dataclass(frozen=True)
class Removed:
    joined_at: datetime
    removed_at: datetime
    removed_by_id: int | None


MembershipState = Union[Active, Removed]


class UserWorkspace(Base):
    """User membership in a workspace, with role and soft-delete history."""

    __tablename__ = "user_workspaces"

    __table_args__ = (
        Index(
            "uq_user_workspaces_active",
            "user_id",
            "workspace_id",
            unique=True,
            postgresql_where=text("removed_at IS NULL"),
            sqlite_where=text("removed_at IS NULL"),
        ),
        Index("ix_user_workspaces_workspace_id", "workspace_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    workspace_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="member")
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    removed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    removed_by_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    user: Mapped[User] = relationship("User", foreign_keys=[user_id])
    workspace: Mapped[Workspace] = relationship("Workspace", back_populates="memberships")

    @property
    def state(self) -> MembershipState:
        if self.removed_at is None:
            return Active(joined_at=self.joined_at)
        return Removed(
            joined_at=self.joined_at,
            removed_at=self.removed_at,
            removed_by_id=self.removed_by_id,
        )

    @property
    def is_active(self) -> bool:
        return isinstance(self.state, Active)

    def mark_removed(self, removed_by_id: int, when: datetime | None = None) -> None:
        """Soft-delete this membership. Already-removed rows are left untouched."""
        if not self.is_active:
            return
        self.removed_at = when or datetime.now(UTC)
        self.removed_by_id = removed_by_id
