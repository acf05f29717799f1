"""Bounty CRUD, visibility and status-change endpoints."""

import pytest
from sqlalchemy import select

from app.core.status_rules import ALLOWED_TRANSITIONS
from app.db.enums import BountyActivityAction, BountyStatus, WorkspaceRole
from app.db.models import Bounty, BountyActivity, WorkspaceBudget


INVALID_TRANSITIONS = [
    (current, target)
    for current in BountyStatus
    for target in BountyStatus
    if target != current and target not in ALLOWED_TRANSITIONS[current]
]

NEEDS_ASSIGNEE = {
    BountyStatus.ASSIGNED,
    BountyStatus.IN_REVIEW,
    BountyStatus.PAID,
    BountyStatus.COMPLETED,
}


def bounty_payload(**overrides) -> dict:
    payload = {
        "title": "Add dark mode",
        "description": "Add a dark theme toggle to the settings page",
        "deliverables": "A merged pull request with screenshots",
        "amount": 25_000,
        "tags": ["frontend", "ui"],
        "codingLanguages": ["TypeScript"],
    }
    payload.update(overrides)
    return payload


def _budget(db, workspace) -> WorkspaceBudget:
    db.expire_all()
    return db.execute(
        select(WorkspaceBudget).where(WorkspaceBudget.workspace_id == workspace.id)
    ).scalar_one()


def _activities(db, bounty) -> list[BountyActivity]:
    return list(
        db.execute(
            select(BountyActivity).where(BountyActivity.bounty_id == bounty.id)
        ).scalars()
    )


# =============================================================================
# Creation
# =============================================================================


@pytest.mark.asyncio
async def test_create_draft_does_not_reserve(client, db, workspace, owner, as_actor):
    response = await client.post(
        f"/api/workspaces/{workspace.id}/bounties",
        json=bounty_payload(),
        headers=as_actor(owner).headers,
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["status"] == "DRAFT"
    assert data["creatorPubkey"] == owner.pubkey
    assert data["tags"] == ["frontend", "ui"]
    assert _budget(db, workspace).reserved_budget == 0


@pytest.mark.asyncio
async def test_create_open_reserves_amount(client, db, workspace, owner, as_actor):
    response = await client.post(
        f"/api/workspaces/{workspace.id}/bounties",
        json=bounty_payload(status="OPEN"),
        headers=as_actor(owner).headers,
    )

    assert response.status_code == 201
    budget = _budget(db, workspace)
    assert budget.available_budget == 75_000
    assert budget.reserved_budget == 25_000

    bounty = db.execute(select(Bounty)).scalar_one()
    [activity] = _activities(db, bounty)
    assert activity.action == BountyActivityAction.CREATED.value


@pytest.mark.asyncio
async def test_create_open_beyond_budget_fails_cleanly(client, db, workspace, owner, as_actor):
    response = await client.post(
        f"/api/workspaces/{workspace.id}/bounties",
        json=bounty_payload(status="OPEN", amount=500_000),
        headers=as_actor(owner).headers,
    )

    assert response.status_code == 400
    assert db.execute(select(Bounty)).first() is None
    assert _budget(db, workspace).available_budget == 100_000


@pytest.mark.asyncio
async def test_create_rejects_non_creatable_status(client, workspace, owner, as_actor):
    response = await client.post(
        f"/api/workspaces/{workspace.id}/bounties",
        json=bounty_payload(status="PAID"),
        headers=as_actor(owner).headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_viewer_cannot_create(client, workspace, make_user, add_member, as_actor):
    viewer = make_user()
    add_member(workspace, viewer, WorkspaceRole.VIEWER)

    response = await client.post(
        f"/api/workspaces/{workspace.id}/bounties",
        json=bounty_payload(),
        headers=as_actor(viewer).headers,
    )
    assert response.status_code == 403


# =============================================================================
# Visibility and listing
# =============================================================================


@pytest.mark.asyncio
async def test_draft_hidden_from_outsiders(client, workspace, owner, make_user, make_bounty, as_actor):
    draft = make_bounty(workspace, owner, status=BountyStatus.DRAFT)
    stranger = make_user()

    anonymous = await client.get(f"/api/bounties/{draft.id}")
    outsider = await client.get(f"/api/bounties/{draft.id}", headers=as_actor(stranger).headers)
    creator = await client.get(f"/api/bounties/{draft.id}", headers=as_actor(owner).headers)

    assert anonymous.status_code == 403
    assert outsider.status_code == 403
    assert creator.status_code == 200


@pytest.mark.asyncio
async def test_open_bounty_is_public(client, workspace, owner, make_bounty):
    bounty = make_bounty(workspace, owner)

    response = await client.get(f"/api/bounties/{bounty.id}")

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "OPEN"


@pytest.mark.asyncio
async def test_marketplace_excludes_drafts_and_filters(client, workspace, owner, make_bounty):
    make_bounty(workspace, owner, status=BountyStatus.DRAFT, title="Secret draft")
    make_bounty(workspace, owner, title="Rust parser", tags=["rust", "parser"])
    make_bounty(workspace, owner, title="Python client", tags=["python"])

    everything = await client.get("/api/bounties")
    tagged = await client.get("/api/bounties?tags=rust")
    searched = await client.get("/api/bounties?search=CLIENT")

    assert {b["title"] for b in everything.json()["data"]} == {"Rust parser", "Python client"}
    assert [b["title"] for b in tagged.json()["data"]] == ["Rust parser"]
    assert [b["title"] for b in searched.json()["data"]] == ["Python client"]


@pytest.mark.asyncio
async def test_workspace_listing_includes_drafts(client, workspace, owner, make_bounty, as_actor):
    make_bounty(workspace, owner, status=BountyStatus.DRAFT)
    make_bounty(workspace, owner)

    response = await client.get(
        f"/api/workspaces/{workspace.id}/bounties", headers=as_actor(owner).headers
    )

    assert response.json()["meta"]["pagination"]["totalCount"] == 2


@pytest.mark.asyncio
async def test_bounty_from_other_workspace_is_404(
    client, workspace, owner, make_workspace, make_bounty, as_actor
):
    other = make_workspace(owner, name="Other")
    bounty = make_bounty(other, owner, status=BountyStatus.DRAFT)

    response = await client.get(
        f"/api/workspaces/{workspace.id}/bounties/{bounty.id}", headers=as_actor(owner).headers
    )
    assert response.status_code == 404


# =============================================================================
# Status changes through PATCH
# =============================================================================


@pytest.mark.asyncio
@pytest.mark.parametrize("current,target", INVALID_TRANSITIONS)
async def test_invalid_transition_rejected(
    client, db, workspace, owner, make_bounty, as_actor, current, target
):
    assignee = owner if current in NEEDS_ASSIGNEE else None
    bounty = make_bounty(workspace, owner, status=current, assignee=assignee)

    response = await client.patch(
        f"/api/workspaces/{workspace.id}/bounties/{bounty.id}",
        json={"status": target.value},
        headers=as_actor(owner).headers,
    )

    assert response.status_code == 400
    assert response.json()["error"]["message"] == (
        f"Cannot transition from {current.value} to {target.value}"
    )
    db.expire_all()
    assert db.get(Bounty, bounty.id).status == current.value
    assert _activities(db, bounty) == []


@pytest.mark.asyncio
async def test_publish_draft_reserves_and_logs_one_update(
    client, db, workspace, owner, make_bounty, as_actor
):
    draft = make_bounty(workspace, owner, status=BountyStatus.DRAFT, amount=10_000)

    response = await client.patch(
        f"/api/workspaces/{workspace.id}/bounties/{draft.id}",
        json={"status": "OPEN", "title": "Published bounty"},
        headers=as_actor(owner).headers,
    )

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "OPEN"
    assert _budget(db, workspace).reserved_budget == 10_000
    [activity] = _activities(db, draft)
    assert activity.action == BountyActivityAction.UPDATED.value
    assert activity.details["statusChange"] == {"from": "DRAFT", "to": "OPEN"}
    assert activity.details["changes"] == {"title": "Published bounty"}


@pytest.mark.asyncio
async def test_amount_locked_after_draft(client, workspace, owner, make_bounty, as_actor):
    bounty = make_bounty(workspace, owner)

    response = await client.patch(
        f"/api/workspaces/{workspace.id}/bounties/{bounty.id}",
        json={"amount": 5},
        headers=as_actor(owner).headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_contributor_cannot_edit_others_bounty(
    client, workspace, owner, make_user, add_member, make_bounty, as_actor
):
    contributor = make_user()
    add_member(workspace, contributor, WorkspaceRole.CONTRIBUTOR)
    bounty = make_bounty(workspace, owner)

    response = await client.patch(
        f"/api/bounties/{bounty.id}",
        json={"title": "Hijacked title"},
        headers=as_actor(contributor).headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_publish_with_new_amount_reserves_new_amount(
    client, db, workspace, owner, make_bounty, as_actor
):
    draft = make_bounty(workspace, owner, status=BountyStatus.DRAFT, amount=1_000)

    response = await client.patch(
        f"/api/bounties/{draft.id}",
        json={"status": "OPEN", "amount": 5_000},
        headers=as_actor(owner).headers,
    )

    assert response.status_code == 200
    assert response.json()["data"]["amount"] == 5_000
    budget = _budget(db, workspace)
    assert budget.reserved_budget == 5_000
    assert budget.available_budget == 95_000


@pytest.mark.asyncio
async def test_unchanged_status_applies_other_fields(
    client, db, workspace, owner, make_bounty, as_actor
):
    bounty = make_bounty(workspace, owner)

    response = await client.patch(
        f"/api/bounties/{bounty.id}",
        json={"status": "OPEN", "title": "Renamed bounty title"},
        headers=as_actor(owner).headers,
    )

    assert response.status_code == 200
    assert response.json()["data"]["title"] == "Renamed bounty title"
    [activity] = _activities(db, bounty)
    assert activity.details == {"changes": {"title": "Renamed bounty title"}}
    assert _budget(db, workspace).reserved_budget == 1_000


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "current,target",
    [
        (BountyStatus.IN_REVIEW, BountyStatus.PAID),
        (BountyStatus.PAID, BountyStatus.COMPLETED),
        (BountyStatus.IN_REVIEW, BountyStatus.ASSIGNED),
    ],
)
async def test_contributor_creator_cannot_patch_to_admin_status(
    client, db, workspace, make_user, add_member, make_bounty, as_actor, current, target
):
    creator = make_user()
    worker = make_user()
    add_member(workspace, creator, WorkspaceRole.CONTRIBUTOR)
    add_member(workspace, worker, WorkspaceRole.CONTRIBUTOR)
    bounty = make_bounty(workspace, creator, status=current, assignee=worker)
    before = _budget(db, workspace)
    reserved, available = before.reserved_budget, before.available_budget

    response = await client.patch(
        f"/api/bounties/{bounty.id}",
        json={"status": target.value},
        headers=as_actor(creator).headers,
    )

    assert response.status_code == 403
    db.expire_all()
    assert db.get(Bounty, bounty.id).status == current.value
    after = _budget(db, workspace)
    assert (after.reserved_budget, after.available_budget) == (reserved, available)
    assert _activities(db, bounty) == []


@pytest.mark.asyncio
async def test_contributor_creator_cannot_assign_others_via_patch(
    client, db, workspace, make_user, add_member, make_bounty, as_actor
):
    creator = make_user()
    worker = make_user()
    add_member(workspace, creator, WorkspaceRole.CONTRIBUTOR)
    add_member(workspace, worker, WorkspaceRole.CONTRIBUTOR)
    bounty = make_bounty(workspace, creator)

    response = await client.patch(
        f"/api/bounties/{bounty.id}",
        json={"status": "ASSIGNED", "assigneePubkey": worker.pubkey},
        headers=as_actor(creator).headers,
    )

    assert response.status_code == 403
    db.expire_all()
    refreshed = db.get(Bounty, bounty.id)
    assert refreshed.status == BountyStatus.OPEN.value
    assert refreshed.assignee_pubkey is None


@pytest.mark.asyncio
async def test_contributor_creator_can_self_assign_via_patch(
    client, workspace, make_user, add_member, make_bounty, as_actor
):
    creator = make_user()
    add_member(workspace, creator, WorkspaceRole.CONTRIBUTOR)
    bounty = make_bounty(workspace, creator)

    response = await client.patch(
        f"/api/bounties/{bounty.id}",
        json={"status": "ASSIGNED", "assigneePubkey": creator.pubkey},
        headers=as_actor(creator).headers,
    )

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "ASSIGNED"


@pytest.mark.asyncio
async def test_review_only_reachable_through_proof(
    client, db, workspace, owner, make_user, add_member, make_bounty, as_actor
):
    worker = make_user()
    add_member(workspace, worker, WorkspaceRole.CONTRIBUTOR)
    bounty = make_bounty(workspace, owner, status=BountyStatus.ASSIGNED, assignee=worker)

    response = await client.patch(
        f"/api/bounties/{bounty.id}",
        json={"status": "IN_REVIEW"},
        headers=as_actor(owner).headers,
    )

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Submit a proof to move a bounty into review"
    db.expire_all()
    assert db.get(Bounty, bounty.id).status == BountyStatus.ASSIGNED.value


# =============================================================================
# Deletion
# =============================================================================


@pytest.mark.asyncio
async def test_delete_open_bounty_releases_reservation(
    client, db, workspace, owner, make_bounty, as_actor
):
    bounty = make_bounty(workspace, owner, amount=30_000)
    assert _budget(db, workspace).reserved_budget == 30_000

    response = await client.delete(
        f"/api/workspaces/{workspace.id}/bounties/{bounty.id}", headers=as_actor(owner).headers
    )

    assert response.status_code == 200
    budget = _budget(db, workspace)
    assert budget.reserved_budget == 0
    assert budget.available_budget == 100_000
    assert db.get(Bounty, bounty.id).deleted_at is not None
    follow_up = await client.get(f"/api/bounties/{bounty.id}")
    assert follow_up.status_code == 404


@pytest.mark.asyncio
async def test_delete_in_flight_bounty_rejected(
    client, workspace, owner, make_user, add_member, make_bounty, as_actor
):
    worker = make_user()
    add_member(workspace, worker, WorkspaceRole.CONTRIBUTOR)
    bounty = make_bounty(workspace, owner, status=BountyStatus.ASSIGNED, assignee=worker)

    response = await client.delete(
        f"/api/bounties/{bounty.id}", headers=as_actor(owner).headers
    )

    assert response.status_code == 400
    assert response.json()["error"]["details"]["allowedStatuses"] == [
        "CANCELLED",
        "DRAFT",
        "OPEN",
    ]


@pytest.mark.asyncio
async def test_admin_cannot_delete_others_bounty(
    client, workspace, owner, make_user, add_member, make_bounty, as_actor
):
    admin = make_user()
    add_member(workspace, admin, WorkspaceRole.ADMIN)
    bounty = make_bounty(workspace, owner)

    response = await client.delete(
        f"/api/bounties/{bounty.id}", headers=as_actor(admin).headers
    )
    assert response.status_code == 403
