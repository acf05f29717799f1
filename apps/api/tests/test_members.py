"""Workspace membership endpoints and the last-owner rule."""

import pytest
from sqlalchemy import func, select

from app.db.enums import NotificationType, WorkspaceActivityAction, WorkspaceRole
from app.db.models import Notification, WorkspaceActivity, WorkspaceMember
from app.services import membership_service

from tests.helpers import make_pubkey


def _member_count(db, workspace) -> int:
    return db.execute(
        select(func.count())
        .select_from(WorkspaceMember)
        .where(WorkspaceMember.workspace_id == workspace.id)
    ).scalar_one()


@pytest.mark.asyncio
async def test_add_member_defaults_to_contributor(client, db, workspace, owner, make_user, as_actor):
    newcomer = make_user()

    response = await client.post(
        f"/api/workspaces/{workspace.id}/members",
        json={"userPubkey": newcomer.pubkey},
        headers=as_actor(owner).headers,
    )

    assert response.status_code == 201
    assert response.json()["data"]["role"] == "CONTRIBUTOR"
    notification = db.execute(select(Notification)).scalar_one()
    assert notification.user_pubkey == newcomer.pubkey
    assert notification.type == NotificationType.MEMBER_ADDED.value


@pytest.mark.asyncio
async def test_add_unknown_user_404(client, workspace, owner, as_actor):
    response = await client.post(
        f"/api/workspaces/{workspace.id}/members",
        json={"userPubkey": make_pubkey()},
        headers=as_actor(owner).headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_add_existing_member_409(client, workspace, owner, as_actor):
    response = await client.post(
        f"/api/workspaces/{workspace.id}/members",
        json={"userPubkey": owner.pubkey, "role": "ADMIN"},
        headers=as_actor(owner).headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_contributor_cannot_add_members(
    client, workspace, make_user, add_member, as_actor
):
    contributor = make_user()
    add_member(workspace, contributor, WorkspaceRole.CONTRIBUTOR)

    response = await client.post(
        f"/api/workspaces/{workspace.id}/members",
        json={"userPubkey": make_user().pubkey},
        headers=as_actor(contributor).headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_demoting_sole_owner_rejected_and_unchanged(client, db, workspace, owner, as_actor):
    response = await client.patch(
        f"/api/workspaces/{workspace.id}/members/{owner.pubkey}",
        json={"role": "ADMIN"},
        headers=as_actor(owner).headers,
    )

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Cannot remove the last owner from the workspace"
    db.expire_all()
    assert membership_service.get_role(db, workspace.id, owner.pubkey) == WorkspaceRole.OWNER


@pytest.mark.asyncio
async def test_removing_sole_owner_rejected(client, db, workspace, owner, as_actor):
    response = await client.delete(
        f"/api/workspaces/{workspace.id}/members/{owner.pubkey}",
        headers=as_actor(owner).headers,
    )

    assert response.status_code == 400
    assert _member_count(db, workspace) == 1


@pytest.mark.asyncio
async def test_remove_one_of_two_owners(
    client, db, workspace, owner, make_user, add_member, as_actor
):
    co_owner = make_user()
    add_member(workspace, co_owner, WorkspaceRole.OWNER)
    assert _member_count(db, workspace) == 2

    response = await client.delete(
        f"/api/workspaces/{workspace.id}/members/{owner.pubkey}",
        headers=as_actor(co_owner).headers,
    )

    assert response.status_code == 200
    assert _member_count(db, workspace) == 1
    db.refresh(workspace)
    assert workspace.owner_pubkey == co_owner.pubkey


@pytest.mark.asyncio
async def test_change_role_logs_activity(
    client, db, workspace, owner, make_user, add_member, as_actor
):
    member = make_user()
    add_member(workspace, member, WorkspaceRole.VIEWER)

    response = await client.patch(
        f"/api/workspaces/{workspace.id}/members/{member.pubkey}",
        json={"role": "ADMIN"},
        headers=as_actor(owner).headers,
    )

    assert response.status_code == 200
    assert response.json()["data"]["role"] == "ADMIN"
    activity = db.execute(
        select(WorkspaceActivity).where(
            WorkspaceActivity.action == WorkspaceActivityAction.ROLE_CHANGED.value
        )
    ).scalar_one()
    assert activity.details == {
        "memberPubkey": member.pubkey,
        "oldRole": "VIEWER",
        "newRole": "ADMIN",
    }


@pytest.mark.asyncio
async def test_list_members_includes_user_summary(client, workspace, owner, as_actor):
    response = await client.get(
        f"/api/workspaces/{workspace.id}/members", headers=as_actor(owner).headers
    )

    members = response.json()["data"]
    assert len(members) == 1
    assert members[0]["user"]["username"] == owner.username
