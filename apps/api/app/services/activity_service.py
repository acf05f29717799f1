"""Activity logging service - append-only bounty and workspace audit rows."""

from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.db.enums import BountyActivityAction, WorkspaceActivityAction
from app.db.models import BountyActivity, WorkspaceActivity
from app.utils.pagination import PaginationParams, paginate_query


def log_bounty_activity(
    db: Session,
    bounty_id: UUID,
    action: BountyActivityAction,
    actor_pubkey: str,
    details: dict[str, Any] | None = None,
) -> BountyActivity:
    """
    Log a bounty activity.
    
    Args:
        db: Database session
        bounty_id: The bounty this activity is for
        action: Type of activity (from BountyActivityAction enum)
        actor_pubkey: Caller who performed the action
        details: Action-specific details as JSON
        
    Returns:
        The created activity row
    """
    activity = BountyActivity(
        bounty_id=bounty_id,
        user_pubkey=actor_pubkey,
        action=action.value,
        details=details,
    )
    db.add(activity)
    db.flush()  # Don't commit - let caller control transaction
    return activity


def log_workspace_activity(
    db: Session,
    workspace_id: UUID,
    action: WorkspaceActivityAction,
    actor_pubkey: str,
    details: dict[str, Any] | None = None,
) -> WorkspaceActivity:
    """Log a workspace activity (flushes, caller commits)."""
    activity = WorkspaceActivity(
        workspace_id=workspace_id,
        user_pubkey=actor_pubkey,
        action=action.value,
        details=details,
    )
    db.add(activity)
    db.flush()
    return activity


def log_status_change(
    db: Session,
    bounty_id: UUID,
    action: BountyActivityAction,
    actor_pubkey: str,
    old_status: str,
    new_status: str,
    **extra: Any,
) -> BountyActivity:
    """Log a workflow action that moved the bounty between statuses."""
    details: dict[str, Any] = {"statusChange": {"from": old_status, "to": new_status}}
    details.update({k: v for k, v in extra.items() if v is not None})
    return log_bounty_activity(db, bounty_id, action, actor_pubkey, details)


# =============================================================================
# Reads
# =============================================================================


def list_bounty_activities(
    db: Session,
    bounty_id: UUID,
    pagination: PaginationParams,
) -> tuple[list[BountyActivity], int]:
    stmt = (
        select(BountyActivity)
        .where(BountyActivity.bounty_id == bounty_id)
        .order_by(BountyActivity.timestamp.desc(), BountyActivity.id)
    )
    return paginate_query(db, stmt, pagination)


def list_workspace_activities(
    db: Session,
    workspace_id: UUID,
    pagination: PaginationParams,
    action: WorkspaceActivityAction | None = None,
) -> tuple[list[WorkspaceActivity], int]:
    stmt = select(WorkspaceActivity).where(WorkspaceActivity.workspace_id == workspace_id)
    if action is not None:
        stmt = stmt.where(WorkspaceActivity.action == action.value)
    stmt = stmt.order_by(WorkspaceActivity.timestamp.desc(), WorkspaceActivity.id)
    return paginate_query(db, stmt, pagination)


def count_bounty_activities(
    db: Session,
    bounty_id: UUID,
    action: BountyActivityAction | None = None,
) -> int:
    stmt = select(func.count()).select_from(BountyActivity).where(
        BountyActivity.bounty_id == bounty_id
    )
    if action is not None:
        stmt = stmt.where(BountyActivity.action == action.value)
    return db.execute(stmt).scalar_one()
