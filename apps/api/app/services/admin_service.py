"""Platform-wide statistics and listings for super admins."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.db.enums import BountyStatus, TransactionStatus, TransactionType
from app.db.models import Bounty, Transaction, User, Workspace, WorkspaceMember
from app.services import budget_service
from app.utils.pagination import PaginationParams, paginate_query


def _count(db: Session, stmt) -> int:
    return db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()


def _status_counts(db: Session, *criteria) -> dict[str, int]:
    rows = db.execute(
        select(Bounty.status, func.count())
        .where(Bounty.deleted_at.is_(None), *criteria)
        .group_by(Bounty.status)
    ).all()
    counts = {status.value: 0 for status in BountyStatus}
    counts.update({status: n for status, n in rows})
    return counts


def _total_paid(db: Session, *criteria) -> int:
    return int(
        db.execute(
            select(func.coalesce(func.sum(Transaction.amount), 0)).where(
                Transaction.type == TransactionType.PAYMENT.value,
                Transaction.status == TransactionStatus.COMPLETED.value,
                *criteria,
            )
        ).scalar_one()
    )


def get_platform_stats(db: Session) -> dict:
    by_status = _status_counts(db)
    return {
        "total_users": _count(db, User.live()),
        "total_workspaces": _count(db, Workspace.live()),
        "total_bounties": sum(by_status.values()),
        "bounties_by_status": by_status,
        "total_paid": _total_paid(db),
    }


def get_workspace_stats(db: Session, workspace: Workspace) -> dict:
    by_status = _status_counts(db, Bounty.workspace_id == workspace.id)
    members = db.execute(
        select(func.count())
        .select_from(WorkspaceMember)
        .where(WorkspaceMember.workspace_id == workspace.id)
    ).scalar_one()
    budget = budget_service.get_budget(db, workspace.id)
    return {
        "workspace_id": workspace.id,
        "name": workspace.name,
        "member_count": members,
        "total_bounties": sum(by_status.values()),
        "bounties_by_status": by_status,
        "total_paid": _total_paid(db, Transaction.workspace_id == workspace.id),
        "budget": budget,
    }


def list_workspaces(
    db: Session, pagination: PaginationParams, include_deleted: bool = False
) -> tuple[list[Workspace], int]:
    stmt = select(Workspace) if include_deleted else Workspace.live()
    stmt = stmt.order_by(Workspace.created_at.desc(), Workspace.id)
    return paginate_query(db, stmt, pagination)


def get_any_workspace(db: Session, workspace_id: UUID) -> Workspace | None:
    return db.get(Workspace, workspace_id)
