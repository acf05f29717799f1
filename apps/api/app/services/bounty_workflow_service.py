"""Bounty workflow engine.

All status changes funnel through transition_bounty(), which checks the
transition table and applies per-status side effects (budget movements,
lifecycle stamps, notifications). The workflow actions (claim, assign,
complete, ...) add their own guards and write one activity row each.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import BadRequestError, ConflictError, ForbiddenError
from app.core.permissions import can_manage_bounty, has_role
from app.core.status_rules import RESERVED_STATUSES, ensure_transition
from app.db.base import utc_now
from app.db.enums import (
    BountyActivityAction,
    BountyStatus,
    NotificationType,
    ProofStatus,
    WorkspaceRole,
)
from app.db.models import Bounty, BountyProof, Transaction
from app.services import (
    activity_service,
    budget_service,
    membership_service,
    notification_service,
    user_service,
)
from app.utils.datetimes import ensure_utc, seconds_between

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    old_status: BountyStatus
    new_status: BountyStatus
    transaction: Transaction | None = None


def has_accepted_proof(db: Session, bounty: Bounty) -> bool:
    return db.execute(
        select(BountyProof.id).where(
            BountyProof.bounty_id == bounty.id,
            BountyProof.status == ProofStatus.ACCEPTED.value,
        ).limit(1)
    ).first() is not None


def _clear_assignment(bounty: Bounty) -> None:
    bounty.assignee_pubkey = None
    bounty.assigned_at = None
    bounty.work_started_at = None
    bounty.work_closed_at = None


def transition_bounty(
    db: Session,
    bounty: Bounty,
    target: BountyStatus | str,
    actor_pubkey: str,
    assignee_pubkey: str | None = None,
) -> TransitionResult:
    """
    Move a bounty to target after checking the transition table.

    Does not write an activity row; callers log the action they performed.

    Raises:
        InvalidTransitionError (400): edge not in the table (including X -> X)
        BadRequestError (400): side-effect precondition failed
    """
    old_status = BountyStatus(bounty.status)
    ensure_transition(old_status, target)
    target = BountyStatus(target)
    result = TransitionResult(old_status=old_status, new_status=target)

    if target == BountyStatus.OPEN:
        if old_status == BountyStatus.DRAFT:
            budget_service.reserve_for_bounty(db, bounty)
        else:
            _clear_assignment(bounty)

    elif target == BountyStatus.ASSIGNED:
        if old_status == BountyStatus.OPEN:
            pubkey = assignee_pubkey or bounty.assignee_pubkey
            if not pubkey:
                raise BadRequestError("An assignee is required to assign a bounty")
            if membership_service.get_role(db, bounty.workspace_id, pubkey) is None:
                raise BadRequestError("Assignee must be a member of the workspace")
            bounty.assignee_pubkey = pubkey
            bounty.assigned_at = utc_now()
            if pubkey != actor_pubkey:
                notification_service.notify(
                    db,
                    pubkey,
                    NotificationType.BOUNTY_ASSIGNED,
                    "Bounty assigned",
                    f"You have been assigned to: {bounty.title}",
                    bounty.id,
                )
        else:
            # Sent back from review; the assignee restarts the clock
            bounty.work_started_at = None
            bounty.work_closed_at = None

    elif target == BountyStatus.IN_REVIEW:
        if not bounty.assignee_pubkey:
            raise BadRequestError("Bounty has no assignee to review")

    elif target == BountyStatus.PAID:
        if not has_accepted_proof(db, bounty):
            raise BadRequestError("Bounty needs an accepted proof before payment")
        result.transaction = budget_service.pay_bounty(db, bounty, actor_pubkey)
        bounty.paid_at = utc_now()
        notification_service.notify(
            db,
            bounty.assignee_pubkey,
            NotificationType.PAYMENT_RECEIVED,
            "Payment received",
            f"You received {bounty.amount} sats for: {bounty.title}",
            bounty.id,
        )

    elif target == BountyStatus.COMPLETED:
        bounty.completed_at = utc_now()
        if bounty.assignee_pubkey:
            notification_service.notify(
                db,
                bounty.assignee_pubkey,
                NotificationType.BOUNTY_COMPLETED,
                "Bounty completed",
                f"Bounty marked as completed: {bounty.title}",
                bounty.id,
            )

    elif target == BountyStatus.CANCELLED:
        if old_status in RESERVED_STATUSES:
            budget_service.release_for_bounty(db, bounty)

    bounty.status = target.value
    db.flush()
    logger.info(
        "Bounty status changed",
        extra={
            "bounty_id": str(bounty.id),
            "from_status": old_status.value,
            "to_status": target.value,
        },
    )
    return result


# =============================================================================
# Assignment
# =============================================================================


def claim(db: Session, bounty: Bounty, actor_pubkey: str, role: WorkspaceRole | None) -> Bounty:
    """Self-assign an OPEN bounty."""
    if not has_role(role, WorkspaceRole.CONTRIBUTOR):
        raise ForbiddenError("CONTRIBUTOR role or higher required to claim bounties")
    if bounty.assignee_pubkey:
        raise ConflictError("Bounty is already assigned")

    result = transition_bounty(
        db, bounty, BountyStatus.ASSIGNED, actor_pubkey, assignee_pubkey=actor_pubkey
    )
    activity_service.log_status_change(
        db,
        bounty.id,
        BountyActivityAction.ASSIGNED,
        actor_pubkey,
        result.old_status.value,
        result.new_status.value,
        assigneePubkey=actor_pubkey,
        claimed=True,
    )
    return bounty


def unclaim(db: Session, bounty: Bounty, actor_pubkey: str, role: WorkspaceRole | None) -> Bounty:
    """Release an ASSIGNED bounty back to OPEN."""
    if bounty.assignee_pubkey != actor_pubkey and not has_role(role, WorkspaceRole.ADMIN):
        raise ForbiddenError("Only the assignee or a workspace admin can unclaim this bounty")

    previous = bounty.assignee_pubkey
    result = transition_bounty(db, bounty, BountyStatus.OPEN, actor_pubkey)
    activity_service.log_status_change(
        db,
        bounty.id,
        BountyActivityAction.UNASSIGNED,
        actor_pubkey,
        result.old_status.value,
        result.new_status.value,
        previousAssigneePubkey=previous,
    )
    return bounty


def assign(
    db: Session,
    bounty: Bounty,
    actor_pubkey: str,
    role: WorkspaceRole | None,
    assignee_pubkey: str,
) -> Bounty:
    """Admin assignment of an OPEN bounty to a workspace member."""
    if not has_role(role, WorkspaceRole.ADMIN):
        raise ForbiddenError("ADMIN role or higher required to assign bounties")
    if bounty.assignee_pubkey:
        raise ConflictError("Bounty is already assigned")
    user_service.require_user(db, assignee_pubkey)
    if membership_service.get_role(db, bounty.workspace_id, assignee_pubkey) is None:
        raise ForbiddenError("Assignee must be a member of the workspace")

    result = transition_bounty(
        db, bounty, BountyStatus.ASSIGNED, actor_pubkey, assignee_pubkey=assignee_pubkey
    )
    activity_service.log_status_change(
        db,
        bounty.id,
        BountyActivityAction.ASSIGNED,
        actor_pubkey,
        result.old_status.value,
        result.new_status.value,
        assigneePubkey=assignee_pubkey,
    )
    return bounty


# =============================================================================
# Closing actions
# =============================================================================


def mark_paid(
    db: Session, bounty: Bounty, actor_pubkey: str, role: WorkspaceRole | None
) -> tuple[Bounty, Transaction]:
    """IN_REVIEW -> PAID; requires an accepted proof and settles the reservation."""
    if not has_role(role, WorkspaceRole.ADMIN):
        raise ForbiddenError("ADMIN role or higher required to mark bounties paid")

    result = transition_bounty(db, bounty, BountyStatus.PAID, actor_pubkey)
    activity_service.log_status_change(
        db,
        bounty.id,
        BountyActivityAction.PAID,
        actor_pubkey,
        result.old_status.value,
        result.new_status.value,
        transactionId=str(result.transaction.id),
        amount=bounty.amount,
    )
    return bounty, result.transaction


def complete(db: Session, bounty: Bounty, actor_pubkey: str, role: WorkspaceRole | None) -> Bounty:
    """PAID -> COMPLETED."""
    if not has_role(role, WorkspaceRole.ADMIN):
        raise ForbiddenError("ADMIN role or higher required to complete bounties")

    result = transition_bounty(db, bounty, BountyStatus.COMPLETED, actor_pubkey)
    activity_service.log_status_change(
        db,
        bounty.id,
        BountyActivityAction.COMPLETED,
        actor_pubkey,
        result.old_status.value,
        result.new_status.value,
    )
    return bounty


def cancel(
    db: Session,
    bounty: Bounty,
    actor_pubkey: str,
    role: WorkspaceRole | None,
    reason: str | None = None,
) -> Bounty:
    if not can_manage_bounty(bounty, actor_pubkey, role):
        raise ForbiddenError("Only the creator or a workspace admin can cancel this bounty")

    result = transition_bounty(db, bounty, BountyStatus.CANCELLED, actor_pubkey)
    activity_service.log_status_change(
        db,
        bounty.id,
        BountyActivityAction.CANCELLED,
        actor_pubkey,
        result.old_status.value,
        result.new_status.value,
        reason=reason,
    )
    return bounty


# =============================================================================
# Work timing
# =============================================================================


def timing_snapshot(bounty: Bounty) -> dict:
    started = ensure_utc(bounty.work_started_at)
    closed = ensure_utc(bounty.work_closed_at)
    duration = None
    if started and closed:
        duration = seconds_between(started, closed)
    elif started:
        duration = seconds_between(started, utc_now())
    return {
        "bounty_id": bounty.id,
        "work_started_at": started,
        "work_closed_at": closed,
        "is_active": started is not None and closed is None,
        "duration_seconds": duration,
    }


def get_timing(bounty: Bounty, role: WorkspaceRole | None) -> dict:
    if role is None:
        raise ForbiddenError("You must be a workspace member to view timing")
    return timing_snapshot(bounty)


def _require_assignee(bounty: Bounty, actor_pubkey: str) -> None:
    if bounty.assignee_pubkey != actor_pubkey:
        raise ForbiddenError("Only the assignee can track time on this bounty")


def start_timing(db: Session, bounty: Bounty, actor_pubkey: str) -> dict:
    _require_assignee(bounty, actor_pubkey)
    if bounty.work_started_at and not bounty.work_closed_at:
        raise BadRequestError("Timing is already running for this bounty")
    bounty.work_started_at = utc_now()
    bounty.work_closed_at = None
    db.flush()
    return timing_snapshot(bounty)


def close_timing(db: Session, bounty: Bounty, actor_pubkey: str) -> dict:
    _require_assignee(bounty, actor_pubkey)
    if not bounty.work_started_at:
        raise BadRequestError("Timing has not been started for this bounty")
    if bounty.work_closed_at:
        raise BadRequestError("Timing is already closed for this bounty")
    bounty.work_closed_at = utc_now()
    db.flush()
    return timing_snapshot(bounty)


def reset_timing(db: Session, bounty: Bounty, actor_pubkey: str) -> dict:
    _require_assignee(bounty, actor_pubkey)
    bounty.work_started_at = None
    bounty.work_closed_at = None
    db.flush()
    return timing_snapshot(bounty)
