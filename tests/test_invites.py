"""Invite lifecycle tests: pending -> accepted | expired."""

from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from sqlalchemy.orm import Session

from app.models import Notification, UserWorkspace, WorkspaceInvite
from app.models.enums import InviteStatus
from app.services.errors import (
    AlreadyMemberError,
    ConflictError,
    EmailMismatchError,
    ExpiredError,
    ForbiddenError,
    InviteNotPendingError,
    NotFoundError,
)
from app.services.timeutil import utc_now
from app.services.workspaces import (
    accept_invite,
    cancel_invite,
    create_invite,
    effective_status,
    get_invite_by_token,
    list_active_members,
    list_pending_invites,
    remove_member,
)
from tests.factories import actor_for, add_member, make_expired_invite, make_user


def _active_rows(db: Session, user_id: int, workspace_id) -> int:
    return (
        db.query(UserWorkspace)
        .filter(
            UserWorkspace.user_id == user_id,
            UserWorkspace.workspace_id == workspace_id,
            UserWorkspace.removed_at.is_(None),
        )
        .count()
    )


class TestEffectiveStatus:
    def test_pending_before_expiry(self) -> None:
        now = utc_now()
        invite = SimpleNamespace(status="pending", expires_at=now + timedelta(days=1))
        assert effective_status(invite, now) is InviteStatus.pending

    def test_pending_after_expiry_reads_expired(self) -> None:
        now = utc_now()
        invite = SimpleNamespace(status="pending", expires_at=now - timedelta(seconds=1))
        assert effective_status(invite, now) is InviteStatus.expired

    def test_terminal_status_is_unchanged(self) -> None:
        now = utc_now()
        invite = SimpleNamespace(status="accepted", expires_at=now - timedelta(days=30))
        assert effective_status(invite, now) is InviteStatus.accepted

    def test_naive_expiry_is_treated_as_utc(self) -> None:
        now = utc_now()
        naive = (now - timedelta(hours=1)).replace(tzinfo=None)
        invite = SimpleNamespace(status="pending", expires_at=naive)
        assert effective_status(invite, now) is InviteStatus.expired


class TestCreateInvite:
    def test_bob_scenario(self, db: Session, owner_actor, workspace) -> None:
        """Owner invites bob; bob accepts; accepting again conflicts."""
        invite, url = create_invite(db, owner_actor, "bob@x.com", "member")
        assert invite.status == "pending"
        assert url == f"http://testserver/invite/{invite.token}"
        expires_in = invite.expires_at.replace(tzinfo=None) - invite.created_at.replace(
            tzinfo=None
        )
        assert timedelta(days=6, hours=23) < expires_in <= timedelta(days=7)

        bob = make_user(db, "bob@x.com", name="Bob")
        membership = accept_invite(db, bob, invite.token)
        assert membership.role == "member"
        db.refresh(invite)
        assert invite.status == "accepted"

        with pytest.raises(ConflictError):
            accept_invite(db, bob, invite.token)
        assert _active_rows(db, bob.id, workspace.id) == 1

    def test_member_cannot_invite(self, db: Session, workspace) -> None:
        member = make_user(db, "m@acme.com")
        add_member(db, member, workspace.id, "member")
        with pytest.raises(ForbiddenError):
            create_invite(db, actor_for(db, member, workspace.id), "new@x.com")

    def test_admin_can_invite(self, db: Session, workspace) -> None:
        admin = make_user(db, "admin@acme.com")
        add_member(db, admin, workspace.id, "admin")
        invite, _ = create_invite(db, actor_for(db, admin, workspace.id), "new@x.com", "admin")
        assert invite.role == "admin"
        assert invite.invited_by_id == admin.id

    def test_owner_role_cannot_be_granted(self, db: Session, owner_actor) -> None:
        with pytest.raises(ForbiddenError):
            create_invite(db, owner_actor, "new@x.com", "owner")

    def test_duplicate_pending_invite_conflicts(self, db: Session, owner_actor) -> None:
        create_invite(db, owner_actor, "dup@x.com")
        with pytest.raises(ConflictError):
            create_invite(db, owner_actor, "DUP@x.com")

    def test_expired_invite_does_not_block_new_one(self, db: Session, owner_actor) -> None:
        old = make_expired_invite(db, owner_actor, "late@x.com")
        invite, _ = create_invite(db, owner_actor, "late@x.com")
        assert invite.id != old.id
        db.refresh(old)
        assert old.status == "expired"

    def test_active_member_email_conflicts(self, db: Session, owner_actor, owner) -> None:
        with pytest.raises(ConflictError):
            create_invite(db, owner_actor, owner.email)

    def test_removed_member_can_be_reinvited(self, db: Session, owner_actor, workspace) -> None:
        former = make_user(db, "former@x.com")
        add_member(db, former, workspace.id)
        remove_member(db, owner_actor, former.id)
        invite, _ = create_invite(db, owner_actor, "former@x.com")
        membership = accept_invite(db, former, invite.token)
        assert membership.is_active
        rows = db.query(UserWorkspace).filter(UserWorkspace.user_id == former.id).count()
        assert rows == 2

    def test_existing_user_gets_invite_notification(self, db: Session, owner_actor) -> None:
        carol = make_user(db, "carol@x.com")
        invite, _ = create_invite(db, owner_actor, "carol@x.com")
        note = db.query(Notification).filter(Notification.user_id == carol.id).one()
        assert note.type == "workspace_invite"
        assert note.invite_id == invite.id

    def test_unknown_email_gets_no_notification(self, db: Session, owner_actor) -> None:
        create_invite(db, owner_actor, "nobody@x.com")
        assert db.query(Notification).count() == 0


class TestReadInvite:
    def test_unknown_token(self, db: Session) -> None:
        with pytest.raises(NotFoundError):
            get_invite_by_token(db, "nope")

    def test_expired_on_read_is_persisted(self, db: Session, owner_actor) -> None:
        invite = make_expired_invite(db, owner_actor, "late@x.com")
        with pytest.raises(ExpiredError):
            get_invite_by_token(db, invite.token)
        db.refresh(invite)
        assert invite.status == "expired"

    def test_pending_invite_is_returned(self, db: Session, owner_actor) -> None:
        invite, _ = create_invite(db, owner_actor, "x@x.com")
        assert get_invite_by_token(db, invite.token).id == invite.id


class TestAcceptInvite:
    def test_expired_invite_fails_then_reads_expired(self, db: Session, owner_actor) -> None:
        invite = make_expired_invite(db, owner_actor, "late@x.com")
        late = make_user(db, "late@x.com")
        with pytest.raises(ExpiredError):
            accept_invite(db, late, invite.token)
        db.refresh(invite)
        assert invite.status == "expired"
        with pytest.raises(ExpiredError):
            get_invite_by_token(db, invite.token)
        with pytest.raises(InviteNotPendingError) as exc_info:
            accept_invite(db, late, invite.token)
        assert "expired" in exc_info.value.message

    def test_expiry_uses_supplied_clock(self, db: Session, owner_actor) -> None:
        invite, _ = create_invite(db, owner_actor, "clock@x.com")
        user = make_user(db, "clock@x.com")
        with pytest.raises(ExpiredError):
            accept_invite(db, user, invite.token, now=utc_now() + timedelta(days=8))

    def test_email_mismatch_is_forbidden(self, db: Session, owner_actor) -> None:
        invite, _ = create_invite(db, owner_actor, "right@x.com")
        wrong = make_user(db, "wrong@x.com")
        with pytest.raises(EmailMismatchError):
            accept_invite(db, wrong, invite.token)
        db.refresh(invite)
        assert invite.status == "pending"

    def test_email_match_ignores_case(self, db: Session, owner_actor) -> None:
        invite, _ = create_invite(db, owner_actor, "Mixed@X.com")
        user = make_user(db, "mixed@x.com")
        assert accept_invite(db, user, invite.token).is_active

    def test_already_member_closes_invite(self, db: Session, owner_actor, workspace) -> None:
        invite, _ = create_invite(db, owner_actor, "dana@x.com")
        dana = make_user(db, "dana@x.com")
        add_member(db, dana, workspace.id)
        with pytest.raises(AlreadyMemberError):
            accept_invite(db, dana, invite.token)
        db.refresh(invite)
        assert invite.status == "accepted"
        assert _active_rows(db, dana.id, workspace.id) == 1

    def test_inviter_is_notified(self, db: Session, owner_actor, owner) -> None:
        invite, _ = create_invite(db, owner_actor, "erin@x.com")
        erin = make_user(db, "erin@x.com", name="Erin")
        accept_invite(db, erin, invite.token)
        note = (
            db.query(Notification)
            .filter(Notification.user_id == owner.id, Notification.type == "invite_accepted")
            .one()
        )
        assert "Erin" in note.message
        assert note.invite_id == invite.id

    def test_accept_sets_current_workspace_when_unset(
        self, db: Session, owner_actor, workspace
    ) -> None:
        invite, _ = create_invite(db, owner_actor, "fay@x.com")
        fay = make_user(db, "fay@x.com")
        assert fay.current_workspace_id is None
        accept_invite(db, fay, invite.token)
        assert fay.current_workspace_id == workspace.id
        assert fay.id in [m.user_id for m in list_active_members(db, workspace.id)]


class TestListAndCancel:
    def test_list_pending_excludes_expired_and_accepted(
        self, db: Session, owner_actor
    ) -> None:
        make_expired_invite(db, owner_actor, "old@x.com")
        accepted, _ = create_invite(db, owner_actor, "acc@x.com")
        accept_invite(db, make_user(db, "acc@x.com"), accepted.token)
        pending, _ = create_invite(db, owner_actor, "pend@x.com")
        assert [i.id for i in list_pending_invites(db, owner_actor)] == [pending.id]

    def test_cancel_pending_deletes_it_and_its_notification(
        self, db: Session, owner_actor
    ) -> None:
        make_user(db, "gus@x.com")
        invite, _ = create_invite(db, owner_actor, "gus@x.com")
        cancel_invite(db, owner_actor, invite.id)
        assert db.query(WorkspaceInvite).count() == 0
        assert db.query(Notification).count() == 0

    def test_cancel_accepted_conflicts(self, db: Session, owner_actor) -> None:
        invite, _ = create_invite(db, owner_actor, "hal@x.com")
        accept_invite(db, make_user(db, "hal@x.com"), invite.token)
        with pytest.raises(InviteNotPendingError):
            cancel_invite(db, owner_actor, invite.id)

    def test_cancel_unknown_is_not_found(self, db: Session, owner_actor) -> None:
        with pytest.raises(NotFoundError):
            cancel_invite(db, owner_actor, 12345)


class TestConcurrentAcceptance:
    def test_unique_violation_becomes_already_member(
        self, db: Session, owner_actor, workspace
    ) -> None:
        invite, _ = create_invite(db, owner_actor, "race@x.com")
        racer = make_user(db, "race@x.com")
        # The other request's membership landed after our membership check ran
        add_member(db, racer, workspace.id)

        with patch(
            "app.services.workspaces.invites.get_active_membership", return_value=None
        ):
            with pytest.raises(AlreadyMemberError):
                accept_invite(db, racer, invite.token)

        assert _active_rows(db, racer.id, workspace.id) == 1
        assert (
            db.query(Notification)
            .filter(Notification.type == "invite_accepted")
            .count()
            == 0
        )
