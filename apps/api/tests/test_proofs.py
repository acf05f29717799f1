"""Proof submission and review."""

import pytest
from sqlalchemy import select

from app.db.enums import (
    BountyActivityAction,
    BountyStatus,
    NotificationType,
    ProofStatus,
    WorkspaceRole,
)
from app.db.models import Bounty, BountyActivity, BountyProof, Notification


PROOF = {
    "proofUrl": "https://github.com/acme/app/pull/42",
    "description": "Implemented the feature and added tests for it",
}


@pytest.fixture
def contributor(workspace, make_user, add_member):
    user = make_user(username="worker")
    add_member(workspace, user, WorkspaceRole.CONTRIBUTOR)
    return user


@pytest.fixture
def pending_proof(db):
    def factory(bounty: Bounty, submitter) -> BountyProof:
        proof = BountyProof(
            bounty_id=bounty.id,
            submitted_by_pubkey=submitter.pubkey,
            description=PROOF["description"],
            proof_url=PROOF["proofUrl"],
            status=ProofStatus.PENDING.value,
        )
        db.add(proof)
        db.commit()
        return proof

    return factory


def _actions(db, bounty) -> list[str]:
    return [
        a.action
        for a in db.execute(
            select(BountyActivity).where(BountyActivity.bounty_id == bounty.id)
        ).scalars()
    ]


@pytest.mark.asyncio
async def test_assignee_submits_proof(client, db, workspace, owner, contributor, make_bounty, as_actor):
    bounty = make_bounty(workspace, owner, status=BountyStatus.ASSIGNED, assignee=contributor)

    response = await client.post(
        f"/api/bounties/{bounty.id}/proofs", json=PROOF, headers=as_actor(contributor).headers
    )

    assert response.status_code == 201
    assert response.json()["data"]["status"] == "PENDING"
    db.expire_all()
    assert db.get(Bounty, bounty.id).status == BountyStatus.IN_REVIEW.value
    assert _actions(db, bounty) == [BountyActivityAction.PROOF_SUBMITTED.value]


@pytest.mark.asyncio
async def test_non_assignee_cannot_submit(
    client, db, workspace, owner, contributor, make_user, add_member, make_bounty, as_actor
):
    other = make_user()
    add_member(workspace, other, WorkspaceRole.CONTRIBUTOR)
    bounty = make_bounty(workspace, owner, status=BountyStatus.ASSIGNED, assignee=contributor)

    response = await client.post(
        f"/api/bounties/{bounty.id}/proofs", json=PROOF, headers=as_actor(other).headers
    )

    assert response.status_code == 403
    assert db.execute(select(BountyProof)).first() is None


@pytest.mark.asyncio
async def test_submit_outside_assigned_rejected(
    client, db, workspace, owner, contributor, make_bounty, as_actor
):
    bounty = make_bounty(workspace, owner, status=BountyStatus.IN_REVIEW, assignee=contributor)

    response = await client.post(
        f"/api/bounties/{bounty.id}/proofs", json=PROOF, headers=as_actor(contributor).headers
    )

    assert response.status_code == 403
    db.expire_all()
    assert db.get(Bounty, bounty.id).status == BountyStatus.IN_REVIEW.value
    assert db.execute(select(BountyProof)).first() is None


@pytest.mark.asyncio
async def test_invalid_proof_url_is_validation_error(
    client, workspace, owner, contributor, make_bounty, as_actor
):
    bounty = make_bounty(workspace, owner, status=BountyStatus.ASSIGNED, assignee=contributor)

    response = await client.post(
        f"/api/bounties/{bounty.id}/proofs",
        json={**PROOF, "proofUrl": "not a url"},
        headers=as_actor(contributor).headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_approve_accepts_and_keeps_in_review(
    client, db, workspace, owner, contributor, make_bounty, pending_proof, as_actor
):
    bounty = make_bounty(workspace, owner, status=BountyStatus.IN_REVIEW, assignee=contributor)
    proof = pending_proof(bounty, contributor)

    response = await client.patch(
        f"/api/bounties/{bounty.id}/proofs/{proof.id}",
        json={"approved": True, "feedback": "Looks great, thanks!"},
        headers=as_actor(owner).headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "ACCEPTED"
    assert data["reviewedByPubkey"] == owner.pubkey
    db.expire_all()
    assert db.get(Bounty, bounty.id).status == BountyStatus.IN_REVIEW.value
    assert _actions(db, bounty) == [BountyActivityAction.PROOF_REVIEWED.value]
    notification = db.execute(select(Notification)).scalar_one()
    assert notification.user_pubkey == contributor.pubkey
    assert notification.type == NotificationType.PROOF_REVIEWED.value


@pytest.mark.asyncio
async def test_reject_returns_bounty_to_assigned(
    client, db, workspace, owner, contributor, make_bounty, pending_proof, as_actor
):
    bounty = make_bounty(workspace, owner, status=BountyStatus.IN_REVIEW, assignee=contributor)
    proof = pending_proof(bounty, contributor)

    response = await client.patch(
        f"/api/bounties/{bounty.id}/proofs/{proof.id}",
        json={"approved": False, "feedback": "Tests are failing on CI"},
        headers=as_actor(owner).headers,
    )

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "REJECTED"
    db.expire_all()
    refreshed = db.get(Bounty, bounty.id)
    assert refreshed.status == BountyStatus.ASSIGNED.value
    assert refreshed.assignee_pubkey == contributor.pubkey
    [activity] = db.execute(select(BountyActivity)).scalars().all()
    assert activity.details["statusChange"] == {"from": "IN_REVIEW", "to": "ASSIGNED"}


@pytest.mark.asyncio
async def test_request_changes(client, workspace, owner, contributor, make_bounty, pending_proof, as_actor):
    bounty = make_bounty(workspace, owner, status=BountyStatus.IN_REVIEW, assignee=contributor)
    proof = pending_proof(bounty, contributor)

    response = await client.patch(
        f"/api/bounties/{bounty.id}/proofs/{proof.id}",
        json={"approved": False, "requestChanges": True},
        headers=as_actor(owner).headers,
    )

    assert response.json()["data"]["status"] == "CHANGES_REQUESTED"


@pytest.mark.asyncio
async def test_contributor_cannot_review(
    client, workspace, owner, contributor, make_bounty, pending_proof, as_actor
):
    bounty = make_bounty(workspace, owner, status=BountyStatus.IN_REVIEW, assignee=contributor)
    proof = pending_proof(bounty, contributor)

    response = await client.patch(
        f"/api/bounties/{bounty.id}/proofs/{proof.id}",
        json={"approved": True},
        headers=as_actor(contributor).headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_reviewing_twice_rejected(
    client, workspace, owner, contributor, make_bounty, pending_proof, as_actor
):
    bounty = make_bounty(workspace, owner, status=BountyStatus.IN_REVIEW, assignee=contributor)
    proof = pending_proof(bounty, contributor)
    url = f"/api/bounties/{bounty.id}/proofs/{proof.id}"

    first = await client.patch(url, json={"approved": True}, headers=as_actor(owner).headers)
    second = await client.patch(url, json={"approved": True}, headers=as_actor(owner).headers)

    assert first.status_code == 200
    assert second.status_code == 400


@pytest.mark.asyncio
async def test_proof_from_other_bounty_rejected(
    client, workspace, owner, contributor, make_bounty, pending_proof, as_actor
):
    bounty = make_bounty(workspace, owner, status=BountyStatus.IN_REVIEW, assignee=contributor)
    other = make_bounty(workspace, owner, status=BountyStatus.IN_REVIEW, assignee=contributor)
    proof = pending_proof(other, contributor)

    response = await client.patch(
        f"/api/bounties/{bounty.id}/proofs/{proof.id}",
        json={"approved": True},
        headers=as_actor(owner).headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_proofs_members_only(
    client, workspace, owner, contributor, make_user, make_bounty, pending_proof, as_actor
):
    bounty = make_bounty(workspace, owner, status=BountyStatus.IN_REVIEW, assignee=contributor)
    pending_proof(bounty, contributor)

    member = await client.get(f"/api/bounties/{bounty.id}/proofs", headers=as_actor(owner).headers)
    outsider = await client.get(
        f"/api/bounties/{bounty.id}/proofs", headers=as_actor(make_user()).headers
    )

    assert len(member.json()["data"]) == 1
    assert outsider.status_code == 403
