"""Work requests on open bounties."""

import pytest
from sqlalchemy import select

from app.db.enums import BountyActivityAction, BountyRequestStatus, BountyStatus, WorkspaceRole
from app.db.models import Bounty, BountyActivity, BountyRequest


@pytest.fixture
def requesters(workspace, make_user, add_member):
    users = [make_user(), make_user()]
    for user in users:
        add_member(workspace, user, WorkspaceRole.CONTRIBUTOR)
    return users


async def _request(client, bounty, user, as_actor):
    response = await client.post(
        f"/api/bounties/{bounty.id}/requests",
        json={"message": "I have done this before"},
        headers=as_actor(user).headers,
    )
    assert response.status_code == 201
    return response.json()["data"]


@pytest.mark.asyncio
async def test_duplicate_request_conflicts(client, workspace, owner, requesters, make_bounty, as_actor):
    bounty = make_bounty(workspace, owner)
    await _request(client, bounty, requesters[0], as_actor)

    response = await client.post(
        f"/api/bounties/{bounty.id}/requests", json={}, headers=as_actor(requesters[0]).headers
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_request_on_draft_rejected(client, workspace, owner, requesters, make_bounty, as_actor):
    bounty = make_bounty(workspace, owner, status=BountyStatus.DRAFT)

    response = await client.post(
        f"/api/bounties/{bounty.id}/requests", json={}, headers=as_actor(requesters[0]).headers
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_approve_assigns_and_auto_rejects_others(
    client, db, workspace, owner, requesters, make_bounty, as_actor
):
    bounty = make_bounty(workspace, owner)
    first = await _request(client, bounty, requesters[0], as_actor)
    await _request(client, bounty, requesters[1], as_actor)

    response = await client.patch(
        f"/api/bounties/{bounty.id}/requests/{first['id']}",
        json={"action": "approve"},
        headers=as_actor(owner).headers,
    )

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "APPROVED"
    db.expire_all()
    refreshed = db.get(Bounty, bounty.id)
    assert refreshed.status == BountyStatus.ASSIGNED.value
    assert refreshed.assignee_pubkey == requesters[0].pubkey
    statuses = {
        r.requester_pubkey: r.status for r in db.execute(select(BountyRequest)).scalars()
    }
    assert statuses[requesters[1].pubkey] == BountyRequestStatus.REJECTED.value

    approvals = db.execute(
        select(BountyActivity).where(
            BountyActivity.action == BountyActivityAction.REQUEST_APPROVED.value
        )
    ).scalars().all()
    assert len(approvals) == 1
    assert approvals[0].details["autoRejected"] == 1


@pytest.mark.asyncio
async def test_reject_leaves_bounty_open(client, db, workspace, owner, requesters, make_bounty, as_actor):
    bounty = make_bounty(workspace, owner)
    pending = await _request(client, bounty, requesters[0], as_actor)

    response = await client.patch(
        f"/api/bounties/{bounty.id}/requests/{pending['id']}",
        json={"action": "reject", "reviewNote": "Not this time"},
        headers=as_actor(owner).headers,
    )

    assert response.json()["data"]["status"] == "REJECTED"
    db.expire_all()
    assert db.get(Bounty, bounty.id).status == BountyStatus.OPEN.value


@pytest.mark.asyncio
async def test_only_admins_list_requests(client, workspace, owner, requesters, make_bounty, as_actor):
    bounty = make_bounty(workspace, owner)
    await _request(client, bounty, requesters[0], as_actor)

    admin_view = await client.get(
        f"/api/bounties/{bounty.id}/requests", headers=as_actor(owner).headers
    )
    contributor_view = await client.get(
        f"/api/bounties/{bounty.id}/requests", headers=as_actor(requesters[1]).headers
    )

    assert len(admin_view.json()["data"]) == 1
    assert contributor_view.status_code == 403


@pytest.mark.asyncio
async def test_withdraw_own_request_only(client, db, workspace, owner, requesters, make_bounty, as_actor):
    bounty = make_bounty(workspace, owner)
    pending = await _request(client, bounty, requesters[0], as_actor)
    url = f"/api/bounties/{bounty.id}/requests/{pending['id']}"

    stolen = await client.delete(url, headers=as_actor(requesters[1]).headers)
    withdrawn = await client.delete(url, headers=as_actor(requesters[0]).headers)

    assert stolen.status_code == 403
    assert withdrawn.status_code == 200
    assert db.execute(select(BountyRequest)).first() is None
