"""
Proofs Router - /api/bounties/{bounty_id}/proofs endpoints.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.deps import BountyContext, get_bounty_context, get_db
from app.core.rate_limit import limiter, write_limit
from app.core.responses import Envelope, api_created, api_success
from app.schemas.bounty import ProofCreate, ProofRead, ProofReview
from app.services import proof_service

router = APIRouter()


@router.get("/{bounty_id}/proofs", response_model=Envelope[list[ProofRead]])
def list_proofs(
    ctx: BountyContext = Depends(get_bounty_context),
    db: Session = Depends(get_db),
):
    proofs = proof_service.list_proofs(db, ctx.bounty, ctx.role)
    return api_success([ProofRead.model_validate(p) for p in proofs])


@router.post("/{bounty_id}/proofs", status_code=201, response_model=Envelope[ProofRead])
@limiter.limit(write_limit)
def submit_proof(
    request: Request,
    data: ProofCreate,
    ctx: BountyContext = Depends(get_bounty_context),
    db: Session = Depends(get_db),
):
    """Assignee submits proof of work; the bounty moves to IN_REVIEW."""
    proof = proof_service.submit_proof(db, ctx.bounty, ctx.caller.pubkey, data)
    db.commit()
    db.refresh(proof)
    return api_created(ProofRead.model_validate(proof))


@router.patch("/{bounty_id}/proofs/{proof_id}", response_model=Envelope[ProofRead])
def review_proof(
    proof_id: UUID,
    data: ProofReview,
    ctx: BountyContext = Depends(get_bounty_context),
    db: Session = Depends(get_db),
):
    proof = proof_service.review_proof(
        db, ctx.bounty, proof_id, ctx.caller.pubkey, ctx.role, data
    )
    db.commit()
    db.refresh(proof)
    return api_success(ProofRead.model_validate(proof))


@router.delete("/{bounty_id}/proofs/{proof_id}", response_model=Envelope[dict])
def delete_proof(
    proof_id: UUID,
    ctx: BountyContext = Depends(get_bounty_context),
    db: Session = Depends(get_db),
):
    proof_service.delete_proof(db, ctx.bounty, proof_id, ctx.caller.pubkey, ctx.role)
    db.commit()
    return api_success({"id": proof_id, "deleted": True})
