"""Workspace membership rules: leave/remove, listing, rename, switching."""

from __future__ import annotations

import pytest
from sqlalchemy.orm import Session

from app.models import Notification, UserWorkspace, Workspace
from app.models.user_workspace import Active, Removed
from app.services.errors import ForbiddenError, NotFoundError
from app.services.workspaces import (
    create_workspace_for_user,
    list_active_members,
    list_user_workspaces,
    membership_status,
    remove_member,
    rename_workspace,
    resolve_current_workspace,
    slugify,
    switch_workspace,
)
from tests.factories import actor_for, add_member, make_user, make_workspace


@pytest.fixture
def team(db: Session, owner, workspace):
    """Owner plus two admins and two members."""
    admin_a = make_user(db, "a@acme.com", name="Admin A")
    admin_b = make_user(db, "b@acme.com", name="Admin B")
    member_c = make_user(db, "c@acme.com", name="Member C")
    member_d = make_user(db, "d@acme.com", name="Member D")
    add_member(db, admin_a, workspace.id, "admin")
    add_member(db, admin_b, workspace.id, "admin")
    add_member(db, member_c, workspace.id, "member")
    add_member(db, member_d, workspace.id, "member")
    return {"owner": owner, "a": admin_a, "b": admin_b, "c": member_c, "d": member_d}


def _actor(db: Session, user, workspace):
    return actor_for(db, user, workspace.id)


class TestSlugify:
    def test_lowercases_and_hyphenates(self) -> None:
        assert slugify("Acme Corp") == "acme-corp"

    def test_every_non_alnum_char_becomes_hyphen(self) -> None:
        assert slugify("R&D / Ops!") == "r-d---ops-"


class TestCreateWorkspace:
    def test_creator_is_owner_and_current(self, db: Session) -> None:
        user = make_user(db, "ada@example.com", name="Ada")
        ws = create_workspace_for_user(db, user)
        assert ws.name == "Ada's Workspace"
        assert ws.slug == "ada-s-workspace"
        assert user.current_workspace_id == ws.id
        [membership] = list_user_workspaces(db, user)
        assert membership.role == "owner"

    def test_name_defaults_to_email_local_part(self, db: Session) -> None:
        user = make_user(db, "grace@example.com")
        ws = create_workspace_for_user(db, user)
        assert ws.name == "grace's Workspace"

    def test_slug_collision_gets_suffix(self, db: Session, workspace) -> None:
        other = make_user(db, "other@example.com")
        second = make_workspace(db, other, "Acme")
        third = make_workspace(db, other, "Acme")
        assert workspace.slug == "acme"
        assert second.slug == "acme-1"
        assert third.slug == "acme-2"


class TestRename:
    def test_rename_regenerates_slug(self, db: Session, owner_actor) -> None:
        ws = rename_workspace(db, owner_actor, "Globex Corporation")
        assert ws.name == "Globex Corporation"
        assert ws.slug == "globex-corporation"

    def test_same_name_keeps_own_slug(self, db: Session, owner_actor) -> None:
        ws = rename_workspace(db, owner_actor, "Acme")
        assert ws.slug == "acme"

    def test_collision_with_other_workspace_gets_suffix(self, db: Session, owner) -> None:
        other = make_user(db, "other@example.com")
        make_workspace(db, other, "Acme")  # holds slug "acme"
        mine = make_workspace(db, owner, "Initech")
        ws = rename_workspace(db, actor_for(db, owner, mine.id), "Acme")
        assert ws.slug == "acme-1"
        assert db.query(Workspace).filter(Workspace.slug == "initech").count() == 0

    def test_admin_cannot_rename(self, db: Session, workspace, team) -> None:
        with pytest.raises(ForbiddenError):
            rename_workspace(db, _actor(db, team["a"], workspace), "Nope")


class TestRemoveMember:
    def test_owner_cannot_leave(self, db: Session, owner_actor, owner) -> None:
        with pytest.raises(ForbiddenError):
            remove_member(db, owner_actor, owner.id)

    def test_admin_cannot_remove_owner(self, db: Session, workspace, team) -> None:
        with pytest.raises(ForbiddenError):
            remove_member(db, _actor(db, team["a"], workspace), team["owner"].id)

    def test_admin_cannot_remove_admin(self, db: Session, workspace, team) -> None:
        with pytest.raises(ForbiddenError):
            remove_member(db, _actor(db, team["a"], workspace), team["b"].id)

    def test_owner_can_remove_admin(self, db: Session, owner_actor, team) -> None:
        row = remove_member(db, owner_actor, team["b"].id)
        assert isinstance(row.state, Removed)
        assert row.removed_by_id == owner_actor.user_id

    def test_member_cannot_remove_others(self, db: Session, workspace, team) -> None:
        with pytest.raises(ForbiddenError):
            remove_member(db, _actor(db, team["c"], workspace), team["d"].id)

    def test_admin_removes_member_and_notifies(self, db: Session, workspace, team) -> None:
        remove_member(db, _actor(db, team["a"], workspace), team["c"].id)
        status = membership_status(db, team["c"].id, workspace.id)
        assert status["exists"] and status["is_removed"] and not status["is_active"]
        note = db.query(Notification).filter(Notification.user_id == team["c"].id).one()
        assert note.type == "removed_from_workspace"
        assert note.workspace_id == workspace.id

    def test_member_can_leave_without_notification(self, db: Session, workspace, team) -> None:
        remove_member(db, _actor(db, team["d"], workspace), team["d"].id)
        assert membership_status(db, team["d"].id, workspace.id)["is_removed"]
        assert db.query(Notification).filter(Notification.user_id == team["d"].id).count() == 0

    def test_unknown_target_is_not_found(self, db: Session, owner_actor) -> None:
        stranger = make_user(db, "stranger@example.com")
        with pytest.raises(NotFoundError):
            remove_member(db, owner_actor, stranger.id)

    def test_removed_row_is_kept_as_history(self, db: Session, owner_actor, team) -> None:
        remove_member(db, owner_actor, team["c"].id)
        rows = db.query(UserWorkspace).filter(UserWorkspace.user_id == team["c"].id).all()
        assert len(rows) == 1
        assert rows[0].removed_at is not None

    def test_removal_clears_current_workspace(self, db: Session, workspace, owner_actor) -> None:
        user = make_user(db, "e@acme.com")
        add_member(db, user, workspace.id)
        switch_workspace(db, user, workspace.id)
        remove_member(db, owner_actor, user.id)
        db.refresh(user)
        assert user.current_workspace_id is None


class TestListMembers:
    def test_active_members_by_role_then_join_time(
        self, db: Session, owner_actor, workspace, team
    ) -> None:
        remove_member(db, owner_actor, team["d"].id)
        members = list_active_members(db, workspace.id)
        assert [m.user_id for m in members] == [
            team["owner"].id,
            team["a"].id,
            team["b"].id,
            team["c"].id,
        ]
        assert all(isinstance(m.state, Active) for m in members)


class TestMembershipStatus:
    def test_never_member(self, db: Session, workspace) -> None:
        stranger = make_user(db, "stranger@example.com")
        status = membership_status(db, stranger.id, workspace.id)
        assert status == {
            "exists": False,
            "is_active": False,
            "is_removed": False,
            "removed_at": None,
            "role": None,
        }

    def test_active_member(self, db: Session, owner, workspace) -> None:
        status = membership_status(db, owner.id, workspace.id)
        assert status["is_active"] and status["role"] == "owner"


class TestCurrentWorkspace:
    def test_switch_requires_active_membership(self, db: Session, workspace) -> None:
        stranger = make_user(db, "stranger@example.com")
        with pytest.raises(ForbiddenError):
            switch_workspace(db, stranger, workspace.id)

    def test_switch_sets_current(self, db: Session, owner, workspace) -> None:
        second = make_workspace(db, owner, "Second")
        switch_workspace(db, owner, second.id)
        assert owner.current_workspace_id == second.id
        assert resolve_current_workspace(db, owner).workspace_id == second.id

    def test_resolve_falls_back_to_earliest_membership(
        self, db: Session, owner_actor, workspace
    ) -> None:
        user = make_user(db, "f@acme.com")
        own = make_workspace(db, user, "Own")
        add_member(db, user, workspace.id)
        switch_workspace(db, user, workspace.id)
        remove_member(db, owner_actor, user.id)
        membership = resolve_current_workspace(db, user)
        assert membership.workspace_id == own.id
        assert user.current_workspace_id == own.id

    def test_resolve_without_memberships_is_forbidden(self, db: Session) -> None:
        user = make_user(db, "lonely@example.com")
        with pytest.raises(ForbiddenError):
            resolve_current_workspace(db, user)
