"""Proof-of-work submission and review service."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import BadRequestError, ForbiddenError, NotFoundError
from app.core.permissions import can_delete_proof, can_submit_proof, has_role
from app.core.status_rules import ensure_transition
from app.db.base import utc_now
from app.db.enums import (
    BountyActivityAction,
    BountyStatus,
    NotificationType,
    ProofStatus,
    WorkspaceRole,
)
from app.db.models import Bounty, BountyProof
from app.schemas.bounty import ProofCreate, ProofReview
from app.services import activity_service, bounty_workflow_service, notification_service

logger = logging.getLogger(__name__)


def list_proofs(db: Session, bounty: Bounty, role: WorkspaceRole | None) -> list[BountyProof]:
    if role is None:
        raise ForbiddenError("You must be a workspace member to view proofs")
    return list(
        db.execute(
            select(BountyProof)
            .where(BountyProof.bounty_id == bounty.id)
            .order_by(BountyProof.created_at.desc(), BountyProof.id)
        ).scalars().all()
    )


def _get_proof(db: Session, bounty: Bounty, proof_id: UUID) -> BountyProof:
    proof = db.get(BountyProof, proof_id)
    if not proof:
        raise NotFoundError("Proof not found")
    if proof.bounty_id != bounty.id:
        raise BadRequestError("Proof does not belong to this bounty")
    return proof


def submit_proof(
    db: Session,
    bounty: Bounty,
    actor_pubkey: str,
    data: ProofCreate,
) -> BountyProof:
    """
    Assignee submits proof; moves the bounty ASSIGNED -> IN_REVIEW.

    Guards and the transition check run before the proof row is written.
    """
    if bounty.assignee_pubkey != actor_pubkey:
        raise ForbiddenError("Only the assignee can submit proof for this bounty")
    if not can_submit_proof(bounty, actor_pubkey):
        raise ForbiddenError(
            f"Proof can only be submitted while the bounty is {BountyStatus.ASSIGNED.value}"
        )
    ensure_transition(bounty.status, BountyStatus.IN_REVIEW)

    proof = BountyProof(
        bounty_id=bounty.id,
        submitted_by_pubkey=actor_pubkey,
        description=data.description,
        proof_url=str(data.proof_url),
        status=ProofStatus.PENDING.value,
    )
    db.add(proof)
    db.flush()

    result = bounty_workflow_service.transition_bounty(
        db, bounty, BountyStatus.IN_REVIEW, actor_pubkey
    )
    activity_service.log_status_change(
        db,
        bounty.id,
        BountyActivityAction.PROOF_SUBMITTED,
        actor_pubkey,
        result.old_status.value,
        result.new_status.value,
        proofId=str(proof.id),
    )
    return proof


def review_proof(
    db: Session,
    bounty: Bounty,
    proof_id: UUID,
    actor_pubkey: str,
    role: WorkspaceRole | None,
    data: ProofReview,
) -> BountyProof:
    """
    Accept or reject a pending proof.

    Acceptance leaves the bounty IN_REVIEW, ready for payment. Rejection
    sends it back to ASSIGNED so the assignee can resubmit.
    """
    if not has_role(role, WorkspaceRole.ADMIN):
        raise ForbiddenError("ADMIN role or higher required to review proofs")
    proof = _get_proof(db, bounty, proof_id)
    if proof.status != ProofStatus.PENDING:
        raise BadRequestError(f"Proof has already been reviewed ({proof.status})")

    if data.approved:
        new_proof_status = ProofStatus.ACCEPTED
    elif data.request_changes:
        new_proof_status = ProofStatus.CHANGES_REQUESTED
    else:
        new_proof_status = ProofStatus.REJECTED

    status_change = None
    if new_proof_status != ProofStatus.ACCEPTED:
        result = bounty_workflow_service.transition_bounty(
            db, bounty, BountyStatus.ASSIGNED, actor_pubkey
        )
        status_change = {"from": result.old_status.value, "to": result.new_status.value}

    proof.status = new_proof_status.value
    proof.review_notes = data.feedback
    proof.reviewed_by_pubkey = actor_pubkey
    proof.reviewed_at = utc_now()
    db.flush()

    details = {"proofId": str(proof.id), "result": new_proof_status.value}
    if data.feedback:
        details["feedback"] = data.feedback
    if status_change:
        details["statusChange"] = status_change
    activity_service.log_bounty_activity(
        db, bounty.id, BountyActivityAction.PROOF_REVIEWED, actor_pubkey, details
    )

    notification_service.notify(
        db,
        proof.submitted_by_pubkey,
        NotificationType.PROOF_REVIEWED,
        "Proof reviewed",
        f"Your proof for '{bounty.title}' was {new_proof_status.value.lower().replace('_', ' ')}",
        bounty.id,
    )
    return proof


def delete_proof(
    db: Session,
    bounty: Bounty,
    proof_id: UUID,
    actor_pubkey: str,
    role: WorkspaceRole | None,
) -> None:
    proof = _get_proof(db, bounty, proof_id)
    if not can_delete_proof(proof, actor_pubkey, role):
        raise ForbiddenError("Only the submitter or a workspace owner can delete this proof")
    if proof.status == ProofStatus.ACCEPTED:
        raise BadRequestError("Accepted proofs cannot be deleted")
    db.delete(proof)
    db.flush()
    logger.info("Proof deleted", extra={"bounty_id": str(bounty.id)})
