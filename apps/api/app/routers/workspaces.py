"""
Workspaces Router - /api/workspaces endpoints.

Workspace CRUD and the workspace activity feed.
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.core.deps import (
    WorkspaceContext,
    get_caller,
    get_db,
    require_workspace_role,
)
from app.core.errors import ForbiddenError
from app.core.rate_limit import limiter, write_limit
from app.core.responses import Envelope, api_created, api_paginated, api_success
from app.db.enums import WorkspaceActivityAction, WorkspaceRole
from app.schemas.auth import CallerSession
from app.schemas.workspace import (
    WorkspaceActivityRead,
    WorkspaceCreate,
    WorkspaceListItem,
    WorkspaceRead,
    WorkspaceUpdate,
)
from app.services import activity_service, workspace_service
from app.utils.pagination import PaginationParams, get_pagination

router = APIRouter()


@router.get("", response_model=Envelope[list[WorkspaceListItem]])
def list_workspaces(
    pagination: PaginationParams = Depends(get_pagination),
    caller: CallerSession = Depends(get_caller),
    db: Session = Depends(get_db),
):
    """Workspaces the caller is a member of, with their role."""
    rows, total = workspace_service.list_member_workspaces(db, caller.pubkey, pagination)
    items = [
        WorkspaceListItem.model_validate(
            {**WorkspaceRead.model_validate(ws).model_dump(), "role": role, "member_count": count}
        )
        for ws, role, count in rows
    ]
    return api_paginated(items, total, pagination)


@router.post("", status_code=201, response_model=Envelope[WorkspaceRead])
@limiter.limit(write_limit)
def create_workspace(
    request: Request,
    data: WorkspaceCreate,
    caller: CallerSession = Depends(get_caller),
    db: Session = Depends(get_db),
):
    """Create a workspace; the caller becomes its OWNER."""
    workspace = workspace_service.create_workspace(db, caller.pubkey, data)
    db.commit()
    db.refresh(workspace)
    return api_created(WorkspaceRead.model_validate(workspace))


@router.get("/{workspace_id}", response_model=Envelope[WorkspaceRead])
def get_workspace(ctx: WorkspaceContext = Depends(require_workspace_role())):
    return api_success(WorkspaceRead.model_validate(ctx.workspace))


@router.patch("/{workspace_id}", response_model=Envelope[WorkspaceRead])
def update_workspace(
    data: WorkspaceUpdate,
    ctx: WorkspaceContext = Depends(require_workspace_role(WorkspaceRole.ADMIN)),
    db: Session = Depends(get_db),
):
    workspace = workspace_service.update_workspace(db, ctx.workspace, ctx.caller.pubkey, data)
    db.commit()
    db.refresh(workspace)
    return api_success(WorkspaceRead.model_validate(workspace))


@router.delete("/{workspace_id}", response_model=Envelope[dict])
def delete_workspace(
    ctx: WorkspaceContext = Depends(require_workspace_role()),
    db: Session = Depends(get_db),
):
    """Soft-delete a workspace (OWNER only, no active bounties)."""
    if ctx.role != WorkspaceRole.OWNER:
        raise ForbiddenError("Only the workspace owner can delete it")
    workspace_service.delete_workspace(db, ctx.workspace)
    db.commit()
    return api_success({"id": ctx.workspace.id, "deleted": True})


@router.get("/{workspace_id}/activities", response_model=Envelope[list[WorkspaceActivityRead]])
def list_activities(
    action: WorkspaceActivityAction | None = Query(None),
    pagination: PaginationParams = Depends(get_pagination),
    ctx: WorkspaceContext = Depends(require_workspace_role()),
    db: Session = Depends(get_db),
):
    items, total = activity_service.list_workspace_activities(
        db, ctx.workspace.id, pagination, action=action
    )
    return api_paginated(
        [WorkspaceActivityRead.model_validate(a) for a in items], total, pagination
    )
