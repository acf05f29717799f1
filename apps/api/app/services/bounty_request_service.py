"""Bounty assignment requests: ask, review, withdraw."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from app.core.permissions import has_role
from app.db.base import utc_now
from app.db.enums import (
    BountyActivityAction,
    BountyRequestStatus,
    BountyStatus,
    WorkspaceRole,
)
from app.db.models import Bounty, BountyRequest
from app.schemas.bounty import BountyRequestCreate, BountyRequestReview
from app.services import activity_service, bounty_workflow_service, membership_service

logger = logging.getLogger(__name__)


def list_requests(
    db: Session,
    bounty: Bounty,
    role: WorkspaceRole | None,
    status: BountyRequestStatus | None = None,
) -> list[BountyRequest]:
    if not has_role(role, WorkspaceRole.ADMIN):
        raise ForbiddenError("ADMIN role or higher required to view requests")
    stmt = select(BountyRequest).where(BountyRequest.bounty_id == bounty.id)
    if status is not None:
        stmt = stmt.where(BountyRequest.status == status.value)
    stmt = stmt.order_by(BountyRequest.created_at.asc(), BountyRequest.id)
    return list(db.execute(stmt).unique().scalars().all())


def _get_request(db: Session, bounty: Bounty, request_id: UUID) -> BountyRequest:
    request = db.get(BountyRequest, request_id)
    if not request or request.bounty_id != bounty.id:
        raise NotFoundError("Request not found")
    return request


def create_request(
    db: Session,
    bounty: Bounty,
    actor_pubkey: str,
    data: BountyRequestCreate,
) -> BountyRequest:
    if bounty.status != BountyStatus.OPEN:
        raise BadRequestError("Requests can only be made on OPEN bounties")
    if bounty.assignee_pubkey:
        raise ConflictError("Bounty is already assigned")
    existing = db.execute(
        select(BountyRequest.id).where(
            BountyRequest.bounty_id == bounty.id,
            BountyRequest.requester_pubkey == actor_pubkey,
        )
    ).first()
    if existing:
        raise ConflictError("You have already requested this bounty")

    request = BountyRequest(
        bounty_id=bounty.id,
        requester_pubkey=actor_pubkey,
        message=data.message,
        status=BountyRequestStatus.PENDING.value,
    )
    db.add(request)
    db.flush()

    activity_service.log_bounty_activity(
        db,
        bounty.id,
        BountyActivityAction.REQUESTED,
        actor_pubkey,
        {"requestId": str(request.id)},
    )
    return request


def review_request(
    db: Session,
    bounty: Bounty,
    request_id: UUID,
    actor_pubkey: str,
    role: WorkspaceRole | None,
    data: BountyRequestReview,
) -> BountyRequest:
    """
    Approve or reject a pending request.

    Approval assigns the requester (OPEN -> ASSIGNED) and auto-rejects
    every other pending request on the bounty.
    """
    if not has_role(role, WorkspaceRole.ADMIN):
        raise ForbiddenError("ADMIN role or higher required to review requests")
    request = _get_request(db, bounty, request_id)
    if request.status != BountyRequestStatus.PENDING:
        raise BadRequestError(f"Request has already been reviewed ({request.status})")

    now = utc_now()
    if data.action == "reject":
        request.status = BountyRequestStatus.REJECTED.value
        request.review_note = data.review_note
        request.reviewed_by_pubkey = actor_pubkey
        request.reviewed_at = now
        db.flush()
        activity_service.log_bounty_activity(
            db,
            bounty.id,
            BountyActivityAction.REQUEST_REJECTED,
            actor_pubkey,
            {"requestId": str(request.id), "requesterPubkey": request.requester_pubkey},
        )
        return request

    if bounty.status != BountyStatus.OPEN or bounty.assignee_pubkey:
        raise BadRequestError("Only requests on OPEN, unassigned bounties can be approved")
    if membership_service.get_role(db, bounty.workspace_id, request.requester_pubkey) is None:
        raise BadRequestError("Requester must be a member of the workspace")

    result = bounty_workflow_service.transition_bounty(
        db,
        bounty,
        BountyStatus.ASSIGNED,
        actor_pubkey,
        assignee_pubkey=request.requester_pubkey,
    )

    request.status = BountyRequestStatus.APPROVED.value
    request.review_note = data.review_note
    request.reviewed_by_pubkey = actor_pubkey
    request.reviewed_at = now

    others = db.execute(
        select(BountyRequest).where(
            BountyRequest.bounty_id == bounty.id,
            BountyRequest.id != request.id,
            BountyRequest.status == BountyRequestStatus.PENDING.value,
        )
    ).unique().scalars().all()
    for other in others:
        other.status = BountyRequestStatus.REJECTED.value
        other.review_note = "Another request was approved"
        other.reviewed_by_pubkey = actor_pubkey
        other.reviewed_at = now
    db.flush()

    activity_service.log_status_change(
        db,
        bounty.id,
        BountyActivityAction.REQUEST_APPROVED,
        actor_pubkey,
        result.old_status.value,
        result.new_status.value,
        requestId=str(request.id),
        assigneePubkey=request.requester_pubkey,
        autoRejected=len(others) or None,
    )
    return request


def withdraw_request(db: Session, bounty: Bounty, request_id: UUID, actor_pubkey: str) -> None:
    request = _get_request(db, bounty, request_id)
    if request.requester_pubkey != actor_pubkey:
        raise ForbiddenError("You can only withdraw your own request")
    if request.status != BountyRequestStatus.PENDING:
        raise BadRequestError("Only pending requests can be withdrawn")
    db.delete(request)
    db.flush()
