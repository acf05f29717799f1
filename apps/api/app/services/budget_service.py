"""Workspace budget ledger: deposits, withdrawals, bounty reservations and payouts.

Budget invariant: total = available + reserved + paid. Every movement
that touches total or paid is mirrored by a Transaction row.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import BadRequestError
from app.db.base import utc_now
from app.db.enums import (
    TransactionStatus,
    TransactionType,
    WorkspaceActivityAction,
)
from app.db.models import Bounty, Transaction, WorkspaceBudget
from app.services import activity_service
from app.utils.pagination import PaginationParams, paginate_query

logger = logging.getLogger(__name__)


class InsufficientBudgetError(BadRequestError):
    """Available budget does not cover the requested amount."""

    def __init__(self, required: int, available: int, action: str = "fund this bounty"):
        super().__init__(
            f"Insufficient available budget to {action}",
            details={"required": required, "available": available},
        )


def get_budget(db: Session, workspace_id: UUID) -> WorkspaceBudget:
    """Budget row for a workspace, created at zero if missing."""
    budget = db.execute(
        select(WorkspaceBudget).where(WorkspaceBudget.workspace_id == workspace_id)
    ).scalar_one_or_none()
    if budget is None:
        budget = WorkspaceBudget(
            workspace_id=workspace_id,
            total_budget=0,
            available_budget=0,
            reserved_budget=0,
            paid_budget=0,
        )
        db.add(budget)
        db.flush()
    return budget


# =============================================================================
# Deposits / withdrawals
# =============================================================================


def deposit(
    db: Session,
    workspace_id: UUID,
    actor_pubkey: str,
    amount: int,
    memo: str | None = None,
) -> Transaction:
    budget = get_budget(db, workspace_id)
    now = utc_now()
    transaction = Transaction(
        workspace_id=workspace_id,
        type=TransactionType.DEPOSIT.value,
        amount=amount,
        from_user_pubkey=actor_pubkey,
        status=TransactionStatus.COMPLETED.value,
        memo=memo or "Budget deposit",
        completed_at=now,
    )
    db.add(transaction)
    budget.total_budget += amount
    budget.available_budget += amount
    db.flush()

    activity_service.log_workspace_activity(
        db,
        workspace_id,
        WorkspaceActivityAction.BUDGET_DEPOSITED,
        actor_pubkey,
        {"amount": amount, "transactionId": str(transaction.id)},
    )
    return transaction


def withdraw(
    db: Session,
    workspace_id: UUID,
    actor_pubkey: str,
    amount: int,
    memo: str | None = None,
) -> Transaction:
    budget = get_budget(db, workspace_id)
    if budget.available_budget < amount:
        raise InsufficientBudgetError(amount, budget.available_budget, "withdraw")

    transaction = Transaction(
        workspace_id=workspace_id,
        type=TransactionType.WITHDRAWAL.value,
        amount=amount,
        to_user_pubkey=actor_pubkey,
        status=TransactionStatus.COMPLETED.value,
        memo=memo or "Budget withdrawal",
        completed_at=utc_now(),
    )
    db.add(transaction)
    budget.total_budget -= amount
    budget.available_budget -= amount
    db.flush()

    activity_service.log_workspace_activity(
        db,
        workspace_id,
        WorkspaceActivityAction.BUDGET_WITHDRAWN,
        actor_pubkey,
        {"amount": amount, "transactionId": str(transaction.id)},
    )
    return transaction


# =============================================================================
# Bounty reservations
# =============================================================================


def reserve_for_bounty(db: Session, bounty: Bounty) -> WorkspaceBudget:
    """Move the bounty amount from available to reserved."""
    budget = get_budget(db, bounty.workspace_id)
    if budget.available_budget < bounty.amount:
        raise InsufficientBudgetError(bounty.amount, budget.available_budget)
    budget.available_budget -= bounty.amount
    budget.reserved_budget += bounty.amount
    db.flush()
    return budget


def release_for_bounty(db: Session, bounty: Bounty) -> WorkspaceBudget:
    """Return a bounty's reservation to the available pool."""
    budget = get_budget(db, bounty.workspace_id)
    released = min(bounty.amount, budget.reserved_budget)
    if released < bounty.amount:
        logger.warning(
            "Reserved budget below bounty amount on release",
            extra={"bounty_id": str(bounty.id), "workspace_id": str(bounty.workspace_id)},
        )
    budget.reserved_budget -= released
    budget.available_budget += released
    db.flush()
    return budget


def pay_bounty(db: Session, bounty: Bounty, actor_pubkey: str) -> Transaction:
    """Settle a reserved bounty: reserved -> paid, plus a PAYMENT ledger row."""
    budget = get_budget(db, bounty.workspace_id)
    settled = min(bounty.amount, budget.reserved_budget)
    budget.reserved_budget -= settled
    # Anything not covered by the reservation comes out of available funds
    shortfall = bounty.amount - settled
    if shortfall:
        if budget.available_budget < shortfall:
            raise InsufficientBudgetError(shortfall, budget.available_budget, "pay this bounty")
        budget.available_budget -= shortfall
    budget.paid_budget += bounty.amount

    transaction = Transaction(
        workspace_id=bounty.workspace_id,
        bounty_id=bounty.id,
        type=TransactionType.PAYMENT.value,
        amount=bounty.amount,
        from_user_pubkey=actor_pubkey,
        to_user_pubkey=bounty.assignee_pubkey,
        status=TransactionStatus.COMPLETED.value,
        memo=f"Payment for bounty: {bounty.title}",
        completed_at=utc_now(),
    )
    db.add(transaction)
    db.flush()
    return transaction


# =============================================================================
# Ledger reads
# =============================================================================


def list_transactions(
    db: Session,
    pagination: PaginationParams,
    workspace_id: UUID | None = None,
    transaction_type: TransactionType | None = None,
    status: TransactionStatus | None = None,
) -> tuple[list[Transaction], int]:
    stmt = select(Transaction)
    if workspace_id is not None:
        stmt = stmt.where(Transaction.workspace_id == workspace_id)
    if transaction_type is not None:
        stmt = stmt.where(Transaction.type == transaction_type.value)
    if status is not None:
        stmt = stmt.where(Transaction.status == status.value)
    stmt = stmt.order_by(Transaction.created_at.desc(), Transaction.id)
    return paginate_query(db, stmt, pagination)
