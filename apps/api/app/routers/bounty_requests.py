"""
Bounty Requests Router - /api/bounties/{bounty_id}/requests endpoints.

Contributors ask to work on an OPEN bounty; admins approve or reject.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.core.deps import BountyContext, get_bounty_context, get_db
from app.core.rate_limit import limiter, write_limit
from app.core.responses import Envelope, api_created, api_success
from app.db.enums import BountyRequestStatus
from app.schemas.bounty import (
    BountyRequestCreate,
    BountyRequestRead,
    BountyRequestReview,
)
from app.services import bounty_request_service

router = APIRouter()


@router.get("/{bounty_id}/requests", response_model=Envelope[list[BountyRequestRead]])
def list_requests(
    status: BountyRequestStatus | None = Query(None),
    ctx: BountyContext = Depends(get_bounty_context),
    db: Session = Depends(get_db),
):
    requests = bounty_request_service.list_requests(db, ctx.bounty, ctx.role, status)
    return api_success([BountyRequestRead.model_validate(r) for r in requests])


@router.post(
    "/{bounty_id}/requests", status_code=201, response_model=Envelope[BountyRequestRead]
)
@limiter.limit(write_limit)
def create_request(
    request: Request,
    data: BountyRequestCreate,
    ctx: BountyContext = Depends(get_bounty_context),
    db: Session = Depends(get_db),
):
    bounty_request = bounty_request_service.create_request(
        db, ctx.bounty, ctx.caller.pubkey, data
    )
    db.commit()
    db.refresh(bounty_request)
    return api_created(BountyRequestRead.model_validate(bounty_request))


@router.patch(
    "/{bounty_id}/requests/{request_id}", response_model=Envelope[BountyRequestRead]
)
def review_request(
    request_id: UUID,
    data: BountyRequestReview,
    ctx: BountyContext = Depends(get_bounty_context),
    db: Session = Depends(get_db),
):
    bounty_request = bounty_request_service.review_request(
        db, ctx.bounty, request_id, ctx.caller.pubkey, ctx.role, data
    )
    db.commit()
    db.refresh(bounty_request)
    return api_success(BountyRequestRead.model_validate(bounty_request))


@router.delete("/{bounty_id}/requests/{request_id}", response_model=Envelope[dict])
def withdraw_request(
    request_id: UUID,
    ctx: BountyContext = Depends(get_bounty_context),
    db: Session = Depends(get_db),
):
    bounty_request_service.withdraw_request(db, ctx.bounty, request_id, ctx.caller.pubkey)
    db.commit()
    return api_success({"id": request_id, "withdrawn": True})
