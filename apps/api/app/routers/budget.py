"""
Budget Router - workspace budget, deposits/withdrawals and the ledger.
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.core.deps import WorkspaceContext, get_db, require_workspace_role
from app.core.rate_limit import limiter, write_limit
from app.core.responses import Envelope, api_paginated, api_success
from app.db.enums import TransactionStatus, TransactionType, WorkspaceRole
from app.schemas.ledger import BudgetMovement, BudgetRead, TransactionRead
from app.services import budget_service
from app.utils.pagination import PaginationParams, get_pagination

router = APIRouter()


@router.get("/{workspace_id}/budget", response_model=Envelope[BudgetRead])
def get_budget(
    ctx: WorkspaceContext = Depends(require_workspace_role()),
    db: Session = Depends(get_db),
):
    budget = budget_service.get_budget(db, ctx.workspace.id)
    db.commit()
    return api_success(BudgetRead.model_validate(budget))


@router.post("/{workspace_id}/budget/deposit", response_model=Envelope[BudgetRead])
@limiter.limit(write_limit)
def deposit(
    request: Request,
    data: BudgetMovement,
    ctx: WorkspaceContext = Depends(require_workspace_role(WorkspaceRole.ADMIN)),
    db: Session = Depends(get_db),
):
    budget_service.deposit(db, ctx.workspace.id, ctx.caller.pubkey, data.amount, data.memo)
    db.commit()
    budget = budget_service.get_budget(db, ctx.workspace.id)
    return api_success(BudgetRead.model_validate(budget))


@router.post("/{workspace_id}/budget/withdraw", response_model=Envelope[BudgetRead])
@limiter.limit(write_limit)
def withdraw(
    request: Request,
    data: BudgetMovement,
    ctx: WorkspaceContext = Depends(require_workspace_role(WorkspaceRole.ADMIN)),
    db: Session = Depends(get_db),
):
    """Withdraw from the available (unreserved) budget."""
    budget_service.withdraw(db, ctx.workspace.id, ctx.caller.pubkey, data.amount, data.memo)
    db.commit()
    budget = budget_service.get_budget(db, ctx.workspace.id)
    return api_success(BudgetRead.model_validate(budget))


@router.get("/{workspace_id}/transactions", response_model=Envelope[list[TransactionRead]])
def list_transactions(
    type: TransactionType | None = Query(None),
    status: TransactionStatus | None = Query(None),
    pagination: PaginationParams = Depends(get_pagination),
    ctx: WorkspaceContext = Depends(require_workspace_role()),
    db: Session = Depends(get_db),
):
    items, total = budget_service.list_transactions(
        db, pagination, workspace_id=ctx.workspace.id, transaction_type=type, status=status
    )
    return api_paginated([TransactionRead.model_validate(t) for t in items], total, pagination)
