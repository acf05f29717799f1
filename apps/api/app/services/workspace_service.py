"""Workspace CRUD service."""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError
from app.core.status_rules import ACTIVE_STATUSES
from app.db.enums import WorkspaceActivityAction, WorkspaceRole
from app.db.models import Bounty, Workspace, WorkspaceBudget, WorkspaceMember
from app.schemas.workspace import WorkspaceCreate, WorkspaceUpdate
from app.services import activity_service
from app.utils.pagination import PaginationParams

logger = logging.getLogger(__name__)


class DuplicateWorkspaceNameError(ConflictError):
    """Workspace name already taken."""

    pass


class WorkspaceHasActiveBountiesError(ConflictError):
    """Workspace still has OPEN/ASSIGNED/IN_REVIEW bounties."""

    pass


def get_workspace(db: Session, workspace_id: UUID) -> Workspace | None:
    """Live workspace by id."""
    return db.execute(
        Workspace.live().where(Workspace.id == workspace_id)
    ).scalar_one_or_none()


def _name_taken(db: Session, name: str, exclude_id: UUID | None = None) -> bool:
    stmt = select(Workspace.id).where(Workspace.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Workspace.id != exclude_id)
    return db.execute(stmt.limit(1)).first() is not None


def list_member_workspaces(
    db: Session,
    pubkey: str,
    pagination: PaginationParams,
) -> tuple[list[tuple[Workspace, str, int]], int]:
    """
    Workspaces the user belongs to.
    
    Returns:
        ([(workspace, role, member_count)], total_count)
    """
    base = (
        select(Workspace, WorkspaceMember.role)
        .join(WorkspaceMember, WorkspaceMember.workspace_id == Workspace.id)
        .where(WorkspaceMember.user_pubkey == pubkey, Workspace.deleted_at.is_(None))
    )
    total = db.execute(
        select(func.count()).select_from(base.subquery())
    ).scalar_one()
    rows = db.execute(
        base.order_by(Workspace.created_at.desc(), Workspace.id)
        .offset(pagination.offset)
        .limit(pagination.page_size)
    ).all()

    ids = [workspace.id for workspace, _ in rows]
    counts: dict[UUID, int] = {}
    if ids:
        counts = dict(
            db.execute(
                select(WorkspaceMember.workspace_id, func.count())
                .where(WorkspaceMember.workspace_id.in_(ids))
                .group_by(WorkspaceMember.workspace_id)
            ).all()
        )
    return [(workspace, role, counts.get(workspace.id, 0)) for workspace, role in rows], total


def create_workspace(db: Session, owner_pubkey: str, data: WorkspaceCreate) -> Workspace:
    """Create a workspace; the creator becomes its OWNER and a zero budget is opened."""
    name = data.name.strip()
    if _name_taken(db, name):
        raise DuplicateWorkspaceNameError(f"Workspace '{name}' already exists")

    workspace = Workspace(
        name=name,
        owner_pubkey=owner_pubkey,
        description=data.description,
        mission=data.mission,
        avatar_url=data.avatar_url,
        website_url=data.website_url,
        github_url=data.github_url,
    )
    try:
        db.add(workspace)
        db.flush()
    except IntegrityError:
        db.rollback()
        raise DuplicateWorkspaceNameError(f"Workspace '{name}' already exists")

    db.add(
        WorkspaceMember(
            workspace_id=workspace.id,
            user_pubkey=owner_pubkey,
            role=WorkspaceRole.OWNER.value,
        )
    )
    db.add(
        WorkspaceBudget(
            workspace_id=workspace.id,
            total_budget=0,
            available_budget=0,
            reserved_budget=0,
            paid_budget=0,
        )
    )
    db.flush()
    logger.info("Workspace created", extra={"workspace_id": str(workspace.id)})
    return workspace


def update_workspace(
    db: Session,
    workspace: Workspace,
    actor_pubkey: str,
    data: WorkspaceUpdate,
) -> Workspace:
    changes = data.model_dump(exclude_unset=True)
    if changes.get("name", "") is None:
        del changes["name"]
    if "name" in changes:
        changes["name"] = changes["name"].strip()
        if _name_taken(db, changes["name"], exclude_id=workspace.id):
            raise DuplicateWorkspaceNameError(f"Workspace '{changes['name']}' already exists")

    applied = {
        field: value
        for field, value in changes.items()
        if getattr(workspace, field) != value
    }
    if not applied:
        return workspace

    for field, value in applied.items():
        setattr(workspace, field, value)
    db.flush()

    activity_service.log_workspace_activity(
        db,
        workspace.id,
        WorkspaceActivityAction.SETTINGS_UPDATED,
        actor_pubkey,
        {"changes": applied},
    )
    return workspace


def count_active_bounties(db: Session, workspace_id: UUID) -> int:
    return db.execute(
        select(func.count()).select_from(Bounty).where(
            Bounty.workspace_id == workspace_id,
            Bounty.status.in_([s.value for s in ACTIVE_STATUSES]),
            Bounty.deleted_at.is_(None),
        )
    ).scalar_one()


def delete_workspace(db: Session, workspace: Workspace) -> None:
    """Soft-delete; blocked while work is in flight."""
    active = count_active_bounties(db, workspace.id)
    if active:
        raise WorkspaceHasActiveBountiesError(
            "Cannot delete a workspace with open, assigned or in-review bounties",
            details={"activeBounties": active},
        )
    workspace.soft_delete()
    db.flush()
    logger.info("Workspace soft-deleted", extra={"workspace_id": str(workspace.id)})
