"""
Comments Router - /api/bounties/{bounty_id}/comments endpoints.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.deps import (
    BountyContext,
    get_bounty_context,
    get_db,
    get_public_bounty_context,
)
from app.core.rate_limit import limiter, write_limit
from app.core.responses import Envelope, api_created, api_paginated, api_success
from app.schemas.bounty import CommentCreate, CommentRead, CommentUpdate
from app.services import bounty_service, comment_service
from app.utils.pagination import PaginationParams, get_pagination

router = APIRouter()


@router.get("/{bounty_id}/comments", response_model=Envelope[list[CommentRead]])
def list_comments(
    pagination: PaginationParams = Depends(get_pagination),
    ctx: BountyContext = Depends(get_public_bounty_context),
    db: Session = Depends(get_db),
):
    """Oldest first; open to anyone who can see the bounty."""
    pubkey = ctx.caller.pubkey if ctx.caller else None
    bounty_service.ensure_visible(ctx.bounty, pubkey, ctx.role)
    items, total = comment_service.list_comments(db, ctx.bounty, pagination)
    return api_paginated([CommentRead.model_validate(c) for c in items], total, pagination)


@router.post("/{bounty_id}/comments", status_code=201, response_model=Envelope[CommentRead])
@limiter.limit(write_limit)
def create_comment(
    request: Request,
    data: CommentCreate,
    ctx: BountyContext = Depends(get_bounty_context),
    db: Session = Depends(get_db),
):
    comment = comment_service.create_comment(
        db, ctx.bounty, ctx.caller.pubkey, ctx.role, data.content
    )
    db.commit()
    db.refresh(comment)
    return api_created(CommentRead.model_validate(comment))


@router.patch("/{bounty_id}/comments/{comment_id}", response_model=Envelope[CommentRead])
def update_comment(
    comment_id: UUID,
    data: CommentUpdate,
    ctx: BountyContext = Depends(get_bounty_context),
    db: Session = Depends(get_db),
):
    comment = comment_service.update_comment(
        db, ctx.bounty, comment_id, ctx.caller.pubkey, data.content
    )
    db.commit()
    db.refresh(comment)
    return api_success(CommentRead.model_validate(comment))


@router.delete("/{bounty_id}/comments/{comment_id}", response_model=Envelope[dict])
def delete_comment(
    comment_id: UUID,
    ctx: BountyContext = Depends(get_bounty_context),
    db: Session = Depends(get_db),
):
    comment_service.delete_comment(db, ctx.bounty, comment_id, ctx.caller.pubkey, ctx.role)
    db.commit()
    return api_success({"id": comment_id, "deleted": True})
