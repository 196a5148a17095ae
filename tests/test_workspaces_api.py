"""Workspace, member and invite API endpoint tests."""

from __future__ import annotations

import uuid

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.models import WorkspaceInvite
from tests.factories import (
    actor_for,
    add_member,
    auth_headers,
    make_expired_invite,
    make_user,
)


class TestWorkspaces:
    def test_list_my_workspaces(
        self, client_with_db: TestClient, owner, workspace
    ) -> None:
        resp = client_with_db.get("/api/workspaces", headers=auth_headers(owner))
        assert resp.status_code == 200
        data = resp.json()
        assert data["current_workspace_id"] == str(workspace.id)
        [item] = data["items"]
        assert item["role"] == "owner"
        assert item["is_current"] is True
        assert item["workspace"]["slug"] == "acme"

    def test_create_workspace(self, db: Session, client_with_db: TestClient) -> None:
        user = make_user(db, "new@example.com", name="Newt")
        resp = client_with_db.post(
            "/api/workspaces", json={"name": "Newt Co"}, headers=auth_headers(user)
        )
        assert resp.status_code == 201
        assert resp.json()["slug"] == "newt-co"

    def test_rename_blank_is_422(
        self, client_with_db: TestClient, owner, workspace
    ) -> None:
        resp = client_with_db.put(
            f"/api/workspaces/{workspace.id}", json={"name": "   "}, headers=auth_headers(owner)
        )
        assert resp.status_code == 422

    def test_rename_by_member_is_403(
        self, db: Session, client_with_db: TestClient, workspace
    ) -> None:
        member = make_user(db, "m@acme.com")
        add_member(db, member, workspace.id)
        resp = client_with_db.put(
            f"/api/workspaces/{workspace.id}", json={"name": "Mine"}, headers=auth_headers(member)
        )
        assert resp.status_code == 403

    def test_rename_by_owner(self, client_with_db: TestClient, owner, workspace) -> None:
        resp = client_with_db.put(
            f"/api/workspaces/{workspace.id}",
            json={"name": "Acme Labs"},
            headers=auth_headers(owner),
        )
        assert resp.status_code == 200
        assert resp.json()["slug"] == "acme-labs"

    def test_non_member_gets_403(self, db: Session, client_with_db: TestClient, workspace) -> None:
        stranger = make_user(db, "stranger@example.com")
        resp = client_with_db.get(
            f"/api/workspaces/{workspace.id}/members", headers=auth_headers(stranger)
        )
        assert resp.status_code == 403

    def test_switch_to_foreign_workspace_is_403(
        self, client_with_db: TestClient, owner
    ) -> None:
        resp = client_with_db.post(
            "/api/workspaces/switch",
            json={"workspace_id": str(uuid.uuid4())},
            headers=auth_headers(owner),
        )
        assert resp.status_code == 403


class TestMembers:
    def test_list_and_remove(self, db: Session, client_with_db: TestClient, owner, workspace) -> None:
        member = make_user(db, "m@acme.com", name="Mo")
        add_member(db, member, workspace.id)
        headers = auth_headers(owner)

        resp = client_with_db.get(f"/api/workspaces/{workspace.id}/members", headers=headers)
        assert resp.status_code == 200
        data = resp.json()
        assert [m["email"] for m in data["members"]] == ["owner@acme.com", "m@acme.com"]
        assert data["current_user_role"] == "owner"

        resp = client_with_db.delete(
            f"/api/workspaces/{workspace.id}/members/{member.id}", headers=headers
        )
        assert resp.status_code == 204

        resp = client_with_db.get(
            f"/api/workspaces/{workspace.id}/members/{member.id}/status", headers=headers
        )
        assert resp.status_code == 200
        assert resp.json()["is_removed"] is True

    def test_owner_cannot_leave(self, client_with_db: TestClient, owner, workspace) -> None:
        resp = client_with_db.delete(
            f"/api/workspaces/{workspace.id}/members/{owner.id}", headers=auth_headers(owner)
        )
        assert resp.status_code == 403

    def test_removed_member_loses_access(
        self, db: Session, client_with_db: TestClient, owner, workspace
    ) -> None:
        member = make_user(db, "m@acme.com")
        add_member(db, member, workspace.id)
        client_with_db.delete(
            f"/api/workspaces/{workspace.id}/members/{member.id}", headers=auth_headers(owner)
        )
        resp = client_with_db.get(
            f"/api/workspaces/{workspace.id}/members", headers=auth_headers(member)
        )
        assert resp.status_code == 403

    def test_own_status_without_membership(
        self, db: Session, client_with_db: TestClient, workspace
    ) -> None:
        stranger = make_user(db, "stranger@example.com")
        resp = client_with_db.get(
            f"/api/workspaces/{workspace.id}/members/{stranger.id}/status",
            headers=auth_headers(stranger),
        )
        assert resp.status_code == 200
        assert resp.json()["exists"] is False


class TestInvites:
    def test_invite_read_accept_flow(
        self, db: Session, client_with_db: TestClient, owner, workspace
    ) -> None:
        resp = client_with_db.post(
            f"/api/workspaces/{workspace.id}/invites",
            json={"email": "bob@x.com", "role": "member"},
            headers=auth_headers(owner),
        )
        assert resp.status_code == 201
        created = resp.json()
        assert created["status"] == "pending"
        token = created["invite_url"].rsplit("/", 1)[-1]

        public = client_with_db.get(f"/api/invites/{token}")
        assert public.status_code == 200
        assert public.json()["workspace"]["name"] == "Acme"
        assert public.json()["invited_by"]["email"] == "owner@acme.com"

        assert client_with_db.post(f"/api/invites/{token}/accept").status_code == 401

        bob = make_user(db, "bob@x.com")
        accepted = client_with_db.post(f"/api/invites/{token}/accept", headers=auth_headers(bob))
        assert accepted.status_code == 200
        assert accepted.json()["role"] == "member"

        again = client_with_db.post(f"/api/invites/{token}/accept", headers=auth_headers(bob))
        assert again.status_code == 409
        assert "accepted" in again.json()["detail"]

    def test_owner_role_invite_is_422(
        self, client_with_db: TestClient, owner, workspace
    ) -> None:
        resp = client_with_db.post(
            f"/api/workspaces/{workspace.id}/invites",
            json={"email": "x@x.com", "role": "owner"},
            headers=auth_headers(owner),
        )
        assert resp.status_code == 422

    def test_duplicate_invite_is_409(
        self, client_with_db: TestClient, owner, workspace
    ) -> None:
        url = f"/api/workspaces/{workspace.id}/invites"
        assert client_with_db.post(url, json={"email": "d@x.com"}, headers=auth_headers(owner)).status_code == 201
        assert client_with_db.post(url, json={"email": "d@x.com"}, headers=auth_headers(owner)).status_code == 409

    def test_expired_invite_is_410(
        self, db: Session, client_with_db: TestClient, owner, workspace
    ) -> None:
        invite = make_expired_invite(db, actor_for(db, owner, workspace.id), "late@x.com")
        resp = client_with_db.get(f"/api/invites/{invite.token}")
        assert resp.status_code == 410
        db.refresh(invite)
        assert invite.status == "expired"

    def test_wrong_email_accept_is_403(
        self, db: Session, client_with_db: TestClient, owner, workspace
    ) -> None:
        client_with_db.post(
            f"/api/workspaces/{workspace.id}/invites",
            json={"email": "right@x.com"},
            headers=auth_headers(owner),
        )
        invite = db.query(WorkspaceInvite).one()
        wrong = make_user(db, "wrong@x.com")
        resp = client_with_db.post(
            f"/api/invites/{invite.token}/accept", headers=auth_headers(wrong)
        )
        assert resp.status_code == 403

    def test_list_and_cancel(self, client_with_db: TestClient, owner, workspace) -> None:
        headers = auth_headers(owner)
        url = f"/api/workspaces/{workspace.id}/invites"
        invite_id = client_with_db.post(url, json={"email": "c@x.com"}, headers=headers).json()["id"]
        listed = client_with_db.get(url, headers=headers).json()["items"]
        assert [i["id"] for i in listed] == [invite_id]

        assert client_with_db.delete(f"{url}/{invite_id}", headers=headers).status_code == 204
        assert client_with_db.get(url, headers=headers).json()["items"] == []
        assert client_with_db.delete(f"{url}/{invite_id}", headers=headers).status_code == 404

    def test_member_cannot_list_invites(
        self, db: Session, client_with_db: TestClient, workspace
    ) -> None:
        member = make_user(db, "m@acme.com")
        add_member(db, member, workspace.id)
        resp = client_with_db.get(
            f"/api/workspaces/{workspace.id}/invites", headers=auth_headers(member)
        )
        assert resp.status_code == 403
