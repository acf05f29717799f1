"""End-to-end bounty lifecycle through the HTTP API."""

from uuid import UUID

import pytest
from sqlalchemy import select

from app.db.enums import BountyActivityAction, BountyStatus, NotificationType, WorkspaceRole
from app.db.models import BountyActivity, Notification, Transaction, WorkspaceBudget


def _budget(db, workspace) -> WorkspaceBudget:
    db.expire_all()
    return db.execute(
        select(WorkspaceBudget).where(WorkspaceBudget.workspace_id == workspace.id)
    ).scalar_one()


def _actions(db, bounty_id) -> list[str]:
    return [
        a.action
        for a in db.execute(
            select(BountyActivity)
            .where(BountyActivity.bounty_id == bounty_id)
            .order_by(BountyActivity.timestamp, BountyActivity.id)
        ).scalars()
    ]


@pytest.fixture
def worker(workspace, make_user, add_member):
    user = make_user(username="worker")
    add_member(workspace, user, WorkspaceRole.CONTRIBUTOR)
    return user


@pytest.mark.asyncio
async def test_full_lifecycle(client, db, make_workspace, owner, make_user, add_member, as_actor):
    workspace = make_workspace(owner, name="Lifecycle")
    worker = make_user(username="worker")
    add_member(workspace, worker, WorkspaceRole.CONTRIBUTOR)
    admin = as_actor(owner).headers
    contributor = as_actor(worker).headers
    base = f"/api/workspaces/{workspace.id}"

    deposit = await client.post(f"{base}/budget/deposit", json={"amount": 50_000}, headers=admin)
    assert deposit.status_code == 200

    created = await client.post(
        f"{base}/bounties",
        json={
            "title": "Write the release notes",
            "description": "Summarize every change that went into v2.0",
            "deliverables": "A markdown file in docs/",
            "amount": 20_000,
            "status": "OPEN",
        },
        headers=admin,
    )
    assert created.status_code == 201
    bounty_id = UUID(created.json()["data"]["id"])
    assert _budget(db, workspace).reserved_budget == 20_000

    claimed = await client.post(f"{base}/bounties/{bounty_id}/claim", headers=contributor)
    assert claimed.json()["data"]["status"] == "ASSIGNED"
    assert claimed.json()["data"]["assigneePubkey"] == worker.pubkey

    started = await client.put(f"/api/bounties/{bounty_id}/timing/start", headers=contributor)
    closed = await client.put(f"/api/bounties/{bounty_id}/timing/close", headers=contributor)
    assert started.json()["data"]["isActive"] is True
    assert closed.json()["data"]["isActive"] is False
    assert closed.json()["data"]["durationSeconds"] >= 0

    proof = await client.post(
        f"/api/bounties/{bounty_id}/proofs",
        json={
            "proofUrl": "https://github.com/acme/app/pull/7",
            "description": "Release notes are in docs/RELEASE.md",
        },
        headers=contributor,
    )
    assert proof.status_code == 201

    early = await client.post(f"{base}/bounties/{bounty_id}/mark-paid", headers=admin)
    assert early.status_code == 400

    reviewed = await client.patch(
        f"/api/bounties/{bounty_id}/proofs/{proof.json()['data']['id']}",
        json={"approved": True},
        headers=admin,
    )
    assert reviewed.json()["data"]["status"] == "ACCEPTED"

    paid = await client.post(f"{base}/bounties/{bounty_id}/mark-paid", headers=admin)
    assert paid.status_code == 200
    payload = paid.json()["data"]
    assert payload["bounty"]["status"] == "PAID"
    assert payload["transaction"]["type"] == "PAYMENT"
    assert payload["transaction"]["toUserPubkey"] == worker.pubkey

    completed = await client.post(f"{base}/bounties/{bounty_id}/complete", headers=admin)
    assert completed.json()["data"]["status"] == BountyStatus.COMPLETED.value

    budget = _budget(db, workspace)
    assert budget.total_budget == 50_000
    assert budget.reserved_budget == 0
    assert budget.paid_budget == 20_000
    assert budget.available_budget == 30_000

    assert _actions(db, bounty_id) == [
        BountyActivityAction.CREATED.value,
        BountyActivityAction.ASSIGNED.value,
        BountyActivityAction.PROOF_SUBMITTED.value,
        BountyActivityAction.PROOF_REVIEWED.value,
        BountyActivityAction.PAID.value,
        BountyActivityAction.COMPLETED.value,
    ]
    payments = db.execute(
        select(Transaction).where(Transaction.bounty_id == bounty_id)
    ).scalars().all()
    assert len(payments) == 1
    worker_inbox = {
        n.type
        for n in db.execute(
            select(Notification).where(Notification.user_pubkey == worker.pubkey)
        ).scalars()
    }
    assert {
        NotificationType.PROOF_REVIEWED.value,
        NotificationType.PAYMENT_RECEIVED.value,
        NotificationType.BOUNTY_COMPLETED.value,
    } <= worker_inbox

    activity_feed = await client.get(f"/api/bounties/{bounty_id}/activities", headers=admin)
    assert activity_feed.json()["meta"]["pagination"]["totalCount"] == 6


@pytest.mark.asyncio
async def test_claim_then_unclaim(client, db, workspace, owner, worker, make_bounty, as_actor):
    bounty = make_bounty(workspace, owner)
    url = f"/api/workspaces/{workspace.id}/bounties/{bounty.id}"

    await client.post(f"{url}/claim", headers=as_actor(worker).headers)
    second_claim = await client.post(f"{url}/claim", headers=as_actor(owner).headers)
    released = await client.post(f"{url}/unclaim", headers=as_actor(worker).headers)

    assert second_claim.status_code == 409
    assert released.json()["data"]["status"] == "OPEN"
    assert released.json()["data"]["assigneePubkey"] is None
    assert _actions(db, bounty.id) == [
        BountyActivityAction.ASSIGNED.value,
        BountyActivityAction.UNASSIGNED.value,
    ]


@pytest.mark.asyncio
async def test_viewer_cannot_claim(client, workspace, owner, make_user, add_member, make_bounty, as_actor):
    viewer = make_user()
    add_member(workspace, viewer, WorkspaceRole.VIEWER)
    bounty = make_bounty(workspace, owner)

    response = await client.post(
        f"/api/workspaces/{workspace.id}/bounties/{bounty.id}/claim",
        headers=as_actor(viewer).headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_assign_notifies_assignee(
    client, db, workspace, owner, worker, make_bounty, as_actor
):
    bounty = make_bounty(workspace, owner)

    response = await client.post(
        f"/api/bounties/{bounty.id}/assign",
        json={"assigneePubkey": worker.pubkey},
        headers=as_actor(owner).headers,
    )

    assert response.json()["data"]["assigneePubkey"] == worker.pubkey
    notification = db.execute(select(Notification)).scalar_one()
    assert notification.type == NotificationType.BOUNTY_ASSIGNED.value


@pytest.mark.asyncio
async def test_assign_non_member_forbidden(client, workspace, owner, make_user, make_bounty, as_actor):
    bounty = make_bounty(workspace, owner)

    response = await client.post(
        f"/api/bounties/{bounty.id}/assign",
        json={"assigneePubkey": make_user().pubkey},
        headers=as_actor(owner).headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_cancel_assigned_releases_budget(
    client, db, workspace, owner, worker, make_bounty, as_actor
):
    bounty = make_bounty(workspace, owner, status=BountyStatus.ASSIGNED, assignee=worker, amount=7_000)

    response = await client.post(
        f"/api/workspaces/{workspace.id}/bounties/{bounty.id}/cancel",
        json={"reason": "Out of scope"},
        headers=as_actor(owner).headers,
    )

    assert response.json()["data"]["status"] == "CANCELLED"
    budget = _budget(db, workspace)
    assert budget.reserved_budget == 0
    assert budget.available_budget == 100_000
    [activity] = db.execute(select(BountyActivity)).scalars().all()
    assert activity.details["reason"] == "Out of scope"


@pytest.mark.asyncio
async def test_timing_is_assignee_only(client, workspace, owner, worker, make_bounty, as_actor):
    bounty = make_bounty(workspace, owner, status=BountyStatus.ASSIGNED, assignee=worker)

    by_owner = await client.put(
        f"/api/bounties/{bounty.id}/timing/start", headers=as_actor(owner).headers
    )
    close_first = await client.put(
        f"/api/bounties/{bounty.id}/timing/close", headers=as_actor(worker).headers
    )

    assert by_owner.status_code == 403
    assert close_first.status_code == 400
