"""
Admin Router - /api/admin endpoints (super admins only).

Super admins are configured via SUPER_ADMINS; they need no workspace
membership to read these views.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_db, require_super_admin
from app.core.errors import NotFoundError
from app.core.responses import Envelope, api_paginated, api_success
from app.db.enums import TransactionStatus, TransactionType
from app.schemas.admin import PlatformStats, WorkspaceStats
from app.schemas.ledger import BudgetRead, TransactionRead
from app.schemas.user import UserRead
from app.schemas.workspace import WorkspaceRead
from app.services import admin_service, budget_service, user_service
from app.utils.pagination import PaginationParams, get_pagination

router = APIRouter(dependencies=[Depends(require_super_admin)])


@router.get("/stats", response_model=Envelope[PlatformStats])
def get_stats(db: Session = Depends(get_db)):
    return api_success(PlatformStats(**admin_service.get_platform_stats(db)))


@router.get("/users", response_model=Envelope[list[UserRead]])
def list_users(
    search: str | None = Query(None, max_length=100),
    pagination: PaginationParams = Depends(get_pagination),
    db: Session = Depends(get_db),
):
    items, total = user_service.list_users(db, pagination, search)
    return api_paginated([UserRead.model_validate(u) for u in items], total, pagination)


@router.get("/workspaces", response_model=Envelope[list[WorkspaceRead]])
def list_workspaces(
    include_deleted: bool = Query(False, alias="includeDeleted"),
    pagination: PaginationParams = Depends(get_pagination),
    db: Session = Depends(get_db),
):
    items, total = admin_service.list_workspaces(db, pagination, include_deleted)
    return api_paginated([WorkspaceRead.model_validate(w) for w in items], total, pagination)


@router.get("/transactions", response_model=Envelope[list[TransactionRead]])
def list_transactions(
    type: TransactionType | None = Query(None),
    status: TransactionStatus | None = Query(None),
    pagination: PaginationParams = Depends(get_pagination),
    db: Session = Depends(get_db),
):
    items, total = budget_service.list_transactions(
        db, pagination, transaction_type=type, status=status
    )
    return api_paginated([TransactionRead.model_validate(t) for t in items], total, pagination)


@router.get("/workspaces/{workspace_id}/stats", response_model=Envelope[WorkspaceStats])
def get_workspace_stats(workspace_id: UUID, db: Session = Depends(get_db)):
    workspace = admin_service.get_any_workspace(db, workspace_id)
    if not workspace:
        raise NotFoundError("Workspace not found")
    stats = admin_service.get_workspace_stats(db, workspace)
    db.commit()
    stats["budget"] = BudgetRead.model_validate(stats["budget"])
    return api_success(WorkspaceStats(**stats))
