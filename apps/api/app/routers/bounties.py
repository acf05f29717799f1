"""
Bounties Router.

Two routers share this module:
    workspace_router - /api/workspaces/{workspace_id}/bounties (CRUD + workflow)
    router           - /api/bounties (marketplace, assignment, timing, activity)
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.core.deps import (
    BountyContext,
    WorkspaceContext,
    get_bounty_context,
    get_db,
    get_public_bounty_context,
    get_workspace_bounty_context,
    require_workspace_role,
)
from app.core.errors import ForbiddenError
from app.core.rate_limit import limiter, write_limit
from app.core.responses import Envelope, api_created, api_paginated, api_success
from app.db.enums import BountySortField, BountyStatus, WorkspaceRole
from app.schemas.bounty import (
    AssignRequest,
    BountyActivityRead,
    BountyCreate,
    BountyRead,
    BountyUpdate,
    CancelRequest,
    TimingRead,
)
from app.schemas.ledger import TransactionRead
from app.services import activity_service, bounty_service, bounty_workflow_service
from app.services.bounty_service import BountyFilters
from app.utils.pagination import PaginationParams, get_pagination

router = APIRouter()
workspace_router = APIRouter()


def get_bounty_filters(
    status: BountyStatus | None = Query(None),
    assignee_pubkey: str | None = Query(None, alias="assigneePubkey"),
    creator_pubkey: str | None = Query(None, alias="creatorPubkey"),
    tags: str | None = Query(None, description="Comma-separated; matches any"),
    search: str | None = Query(None, max_length=200),
    sort_by: BountySortField = Query(BountySortField.CREATED_AT, alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
) -> BountyFilters:
    return BountyFilters(
        status=status,
        assignee_pubkey=assignee_pubkey,
        creator_pubkey=creator_pubkey,
        tags=[t.strip() for t in (tags or "").split(",") if t.strip()],
        search=search.strip() if search else None,
        sort_by=sort_by,
        sort_order=sort_order,
    )


def _read(bounty) -> BountyRead:
    return BountyRead.model_validate(bounty)


def _commit(db: Session, bounty) -> BountyRead:
    db.commit()
    db.refresh(bounty)
    return _read(bounty)


# =============================================================================
# Workspace-scoped CRUD
# =============================================================================


@workspace_router.get("/{workspace_id}/bounties", response_model=Envelope[list[BountyRead]])
def list_workspace_bounties(
    filters: BountyFilters = Depends(get_bounty_filters),
    pagination: PaginationParams = Depends(get_pagination),
    ctx: WorkspaceContext = Depends(require_workspace_role()),
    db: Session = Depends(get_db),
):
    """Workspace bounties, drafts included (members only)."""
    items, total = bounty_service.list_bounties(
        db, pagination, filters, workspace_id=ctx.workspace.id, include_drafts=True
    )
    return api_paginated([_read(b) for b in items], total, pagination)


@workspace_router.post(
    "/{workspace_id}/bounties", status_code=201, response_model=Envelope[BountyRead]
)
@limiter.limit(write_limit)
def create_bounty(
    request: Request,
    data: BountyCreate,
    ctx: WorkspaceContext = Depends(require_workspace_role(WorkspaceRole.CONTRIBUTOR)),
    db: Session = Depends(get_db),
):
    bounty = bounty_service.create_bounty(db, ctx.workspace, ctx.caller.pubkey, data)
    db.commit()
    db.refresh(bounty)
    return api_created(_read(bounty))


@workspace_router.get(
    "/{workspace_id}/bounties/{bounty_id}", response_model=Envelope[BountyRead]
)
def get_workspace_bounty(ctx: BountyContext = Depends(get_workspace_bounty_context)):
    return api_success(_read(ctx.bounty))


@workspace_router.patch(
    "/{workspace_id}/bounties/{bounty_id}", response_model=Envelope[BountyRead]
)
def update_workspace_bounty(
    data: BountyUpdate,
    ctx: BountyContext = Depends(get_workspace_bounty_context),
    db: Session = Depends(get_db),
):
    bounty = bounty_service.update_bounty(db, ctx.bounty, ctx.caller.pubkey, ctx.role, data)
    return api_success(_commit(db, bounty))


@workspace_router.delete(
    "/{workspace_id}/bounties/{bounty_id}", response_model=Envelope[dict]
)
def delete_workspace_bounty(
    ctx: BountyContext = Depends(get_workspace_bounty_context),
    db: Session = Depends(get_db),
):
    bounty_service.delete_bounty(db, ctx.bounty, ctx.caller.pubkey, ctx.role)
    db.commit()
    return api_success({"id": ctx.bounty.id, "deleted": True})


# =============================================================================
# Workspace-scoped workflow actions
# =============================================================================


@workspace_router.post(
    "/{workspace_id}/bounties/{bounty_id}/claim", response_model=Envelope[BountyRead]
)
def claim_bounty(
    ctx: BountyContext = Depends(get_workspace_bounty_context),
    db: Session = Depends(get_db),
):
    bounty = bounty_workflow_service.claim(db, ctx.bounty, ctx.caller.pubkey, ctx.role)
    return api_success(_commit(db, bounty))


@workspace_router.post(
    "/{workspace_id}/bounties/{bounty_id}/unclaim", response_model=Envelope[BountyRead]
)
def unclaim_bounty(
    ctx: BountyContext = Depends(get_workspace_bounty_context),
    db: Session = Depends(get_db),
):
    bounty = bounty_workflow_service.unclaim(db, ctx.bounty, ctx.caller.pubkey, ctx.role)
    return api_success(_commit(db, bounty))


@workspace_router.post(
    "/{workspace_id}/bounties/{bounty_id}/complete", response_model=Envelope[BountyRead]
)
def complete_bounty(
    ctx: BountyContext = Depends(get_workspace_bounty_context),
    db: Session = Depends(get_db),
):
    bounty = bounty_workflow_service.complete(db, ctx.bounty, ctx.caller.pubkey, ctx.role)
    return api_success(_commit(db, bounty))


@workspace_router.post(
    "/{workspace_id}/bounties/{bounty_id}/mark-paid", response_model=Envelope[dict]
)
def mark_bounty_paid(
    ctx: BountyContext = Depends(get_workspace_bounty_context),
    db: Session = Depends(get_db),
):
    """Settle an approved bounty; returns the bounty and its PAYMENT transaction."""
    bounty, transaction = bounty_workflow_service.mark_paid(
        db, ctx.bounty, ctx.caller.pubkey, ctx.role
    )
    payment = TransactionRead.model_validate(transaction)
    return api_success({"bounty": _commit(db, bounty), "transaction": payment})


@workspace_router.post(
    "/{workspace_id}/bounties/{bounty_id}/cancel", response_model=Envelope[BountyRead]
)
def cancel_bounty(
    data: CancelRequest | None = None,
    ctx: BountyContext = Depends(get_workspace_bounty_context),
    db: Session = Depends(get_db),
):
    reason = data.reason if data else None
    bounty = bounty_workflow_service.cancel(
        db, ctx.bounty, ctx.caller.pubkey, ctx.role, reason=reason
    )
    return api_success(_commit(db, bounty))


# =============================================================================
# Global bounties
# =============================================================================


@router.get("", response_model=Envelope[list[BountyRead]])
def list_bounties(
    filters: BountyFilters = Depends(get_bounty_filters),
    pagination: PaginationParams = Depends(get_pagination),
    db: Session = Depends(get_db),
):
    """Public marketplace: non-draft bounties of live workspaces."""
    items, total = bounty_service.list_bounties(db, pagination, filters)
    return api_paginated([_read(b) for b in items], total, pagination)


@router.get("/{bounty_id}", response_model=Envelope[BountyRead])
def get_bounty(ctx: BountyContext = Depends(get_public_bounty_context)):
    pubkey = ctx.caller.pubkey if ctx.caller else None
    bounty_service.ensure_visible(ctx.bounty, pubkey, ctx.role)
    return api_success(_read(ctx.bounty))


@router.patch("/{bounty_id}", response_model=Envelope[BountyRead])
def update_bounty(
    data: BountyUpdate,
    ctx: BountyContext = Depends(get_bounty_context),
    db: Session = Depends(get_db),
):
    bounty = bounty_service.update_bounty(db, ctx.bounty, ctx.caller.pubkey, ctx.role, data)
    return api_success(_commit(db, bounty))


@router.delete("/{bounty_id}", response_model=Envelope[dict])
def delete_bounty(
    ctx: BountyContext = Depends(get_bounty_context),
    db: Session = Depends(get_db),
):
    bounty_service.delete_bounty(db, ctx.bounty, ctx.caller.pubkey, ctx.role)
    db.commit()
    return api_success({"id": ctx.bounty.id, "deleted": True})


@router.post("/{bounty_id}/assign", response_model=Envelope[BountyRead])
def assign_bounty(
    data: AssignRequest,
    ctx: BountyContext = Depends(get_bounty_context),
    db: Session = Depends(get_db),
):
    bounty = bounty_workflow_service.assign(
        db, ctx.bounty, ctx.caller.pubkey, ctx.role, data.assignee_pubkey
    )
    return api_success(_commit(db, bounty))


@router.get("/{bounty_id}/activities", response_model=Envelope[list[BountyActivityRead]])
def list_bounty_activities(
    pagination: PaginationParams = Depends(get_pagination),
    ctx: BountyContext = Depends(get_bounty_context),
    db: Session = Depends(get_db),
):
    if ctx.role is None:
        raise ForbiddenError("You must be a workspace member to view bounty activity")
    items, total = activity_service.list_bounty_activities(db, ctx.bounty.id, pagination)
    return api_paginated([BountyActivityRead.model_validate(a) for a in items], total, pagination)


# =============================================================================
# Work timing
# =============================================================================


@router.get("/{bounty_id}/timing", response_model=Envelope[TimingRead])
def get_timing(ctx: BountyContext = Depends(get_bounty_context)):
    return api_success(TimingRead(**bounty_workflow_service.get_timing(ctx.bounty, ctx.role)))


@router.put("/{bounty_id}/timing/start", response_model=Envelope[TimingRead])
def start_timing(
    ctx: BountyContext = Depends(get_bounty_context),
    db: Session = Depends(get_db),
):
    timing = bounty_workflow_service.start_timing(db, ctx.bounty, ctx.caller.pubkey)
    db.commit()
    return api_success(TimingRead(**timing))


@router.put("/{bounty_id}/timing/close", response_model=Envelope[TimingRead])
def close_timing(
    ctx: BountyContext = Depends(get_bounty_context),
    db: Session = Depends(get_db),
):
    timing = bounty_workflow_service.close_timing(db, ctx.bounty, ctx.caller.pubkey)
    db.commit()
    return api_success(TimingRead(**timing))


@router.delete("/{bounty_id}/timing", response_model=Envelope[TimingRead])
def reset_timing(
    ctx: BountyContext = Depends(get_bounty_context),
    db: Session = Depends(get_db),
):
    timing = bounty_workflow_service.reset_timing(db, ctx.bounty, ctx.caller.pubkey)
    db.commit()
    return api_success(TimingRead(**timing))
