"""Bounty CRUD and listing service."""

import logging
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import String, cast, func, or_
from sqlalchemy.orm import Session

from app.core.errors import BadRequestError, ForbiddenError
from app.core.permissions import (
    DELETABLE_BOUNTY_STATUSES,
    can_delete_bounty,
    can_manage_bounty,
    can_view_bounty,
    has_role,
)
from app.core.status_rules import RESERVED_STATUSES, ensure_transition
from app.db.enums import (
    BountyActivityAction,
    BountySortField,
    BountyStatus,
    WorkspaceRole,
)
from app.db.models import Bounty, Workspace
from app.schemas.bounty import BountyCreate, BountyUpdate
from app.services import activity_service, budget_service, bounty_workflow_service
from app.utils.pagination import PaginationParams, paginate_query

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    BountySortField.CREATED_AT: Bounty.created_at,
    BountySortField.UPDATED_AT: Bounty.updated_at,
    BountySortField.AMOUNT: Bounty.amount,
    BountySortField.ESTIMATED_COMPLETION_DATE: Bounty.estimated_completion_date,
}

URL_FIELDS = ("github_issue_url", "loom_video_url")


@dataclass
class BountyFilters:
    """Listing filters shared by the workspace and marketplace views."""
    status: BountyStatus | None = None
    assignee_pubkey: str | None = None
    creator_pubkey: str | None = None
    tags: list[str] = field(default_factory=list)
    search: str | None = None
    sort_by: BountySortField = BountySortField.CREATED_AT
    sort_order: str = "desc"


def get_bounty(db: Session, bounty_id: UUID) -> Bounty | None:
    """Live bounty in a live workspace."""
    return db.execute(
        Bounty.live()
        .join(Workspace, Workspace.id == Bounty.workspace_id)
        .where(Bounty.id == bounty_id, Workspace.deleted_at.is_(None))
    ).scalar_one_or_none()


def ensure_visible(bounty: Bounty, pubkey: str | None, role: WorkspaceRole | None) -> None:
    if not can_view_bounty(bounty, pubkey, role):
        raise ForbiddenError("You do not have access to this draft bounty")


def list_bounties(
    db: Session,
    pagination: PaginationParams,
    filters: BountyFilters,
    workspace_id: UUID | None = None,
    include_drafts: bool = False,
) -> tuple[list[Bounty], int]:
    """
    Paginated bounty listing.
    
    Scoped to one workspace when workspace_id is given; otherwise the
    public marketplace across live workspaces (drafts excluded).
    """
    stmt = (
        Bounty.live()
        .join(Workspace, Workspace.id == Bounty.workspace_id)
        .where(Workspace.deleted_at.is_(None))
    )
    if workspace_id is not None:
        stmt = stmt.where(Bounty.workspace_id == workspace_id)
    if not include_drafts:
        stmt = stmt.where(Bounty.status != BountyStatus.DRAFT.value)

    if filters.status is not None:
        stmt = stmt.where(Bounty.status == filters.status.value)
    if filters.assignee_pubkey:
        stmt = stmt.where(Bounty.assignee_pubkey == filters.assignee_pubkey)
    if filters.creator_pubkey:
        stmt = stmt.where(Bounty.creator_pubkey == filters.creator_pubkey)
    if filters.tags:
        # JSON array rendered as text; portable across Postgres and SQLite
        tags_text = cast(Bounty.tags, String)
        stmt = stmt.where(or_(*[tags_text.like(f'%"{tag}"%') for tag in filters.tags]))
    if filters.search:
        pattern = f"%{filters.search.lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(Bounty.title).like(pattern),
                func.lower(Bounty.description).like(pattern),
            )
        )

    column = SORT_COLUMNS[filters.sort_by]
    ordering = column.asc() if filters.sort_order == "asc" else column.desc()
    stmt = stmt.order_by(ordering, Bounty.id)
    return paginate_query(db, stmt, pagination)


def _clean(values: dict) -> dict:
    for key in URL_FIELDS:
        if values.get(key) is not None:
            values[key] = str(values[key])
    return values


def create_bounty(
    db: Session,
    workspace: Workspace,
    actor_pubkey: str,
    data: BountyCreate,
) -> Bounty:
    """Create a bounty; creating it OPEN reserves its amount from the budget."""
    values = _clean(data.model_dump(exclude={"status"}))
    bounty = Bounty(
        workspace_id=workspace.id,
        creator_pubkey=actor_pubkey,
        status=BountyStatus.DRAFT.value,
        **values,
    )
    db.add(bounty)
    db.flush()

    if data.status == BountyStatus.OPEN:
        budget_service.reserve_for_bounty(db, bounty)
        bounty.status = BountyStatus.OPEN.value
        db.flush()

    activity_service.log_bounty_activity(
        db,
        bounty.id,
        BountyActivityAction.CREATED,
        actor_pubkey,
        {"title": bounty.title, "amount": bounty.amount, "status": bounty.status},
    )
    logger.info(
        "Bounty created",
        extra={"bounty_id": str(bounty.id), "workspace_id": str(workspace.id)},
    )
    return bounty


def _guard_status_change(
    bounty: Bounty,
    target: BountyStatus,
    actor_pubkey: str,
    role: WorkspaceRole | None,
    assignee_pubkey: str | None,
) -> None:
    """Apply the role rule of the workflow action a PATCH status maps onto."""
    current = BountyStatus(bounty.status)
    ensure_transition(current, target)

    if target == BountyStatus.IN_REVIEW:
        raise BadRequestError("Submit a proof to move a bounty into review")
    if target in (BountyStatus.PAID, BountyStatus.COMPLETED):
        if not has_role(role, WorkspaceRole.ADMIN):
            raise ForbiddenError(
                f"ADMIN role or higher required to move a bounty to {target.value}"
            )
    elif target == BountyStatus.ASSIGNED:
        pubkey = assignee_pubkey or bounty.assignee_pubkey
        self_claim = (
            current == BountyStatus.OPEN
            and pubkey == actor_pubkey
            and has_role(role, WorkspaceRole.CONTRIBUTOR)
        )
        if not self_claim and not has_role(role, WorkspaceRole.ADMIN):
            raise ForbiddenError("ADMIN role or higher required to assign bounties")
    elif target == BountyStatus.OPEN and current == BountyStatus.ASSIGNED:
        if bounty.assignee_pubkey != actor_pubkey and not has_role(role, WorkspaceRole.ADMIN):
            raise ForbiddenError("Only the assignee or a workspace admin can unclaim this bounty")


def update_bounty(
    db: Session,
    bounty: Bounty,
    actor_pubkey: str,
    role: WorkspaceRole | None,
    data: BountyUpdate,
) -> Bounty:
    """
    Partial update, optionally with a status change.
    
    A status equal to the current one is ignored. A real status change
    is checked against the transition table and the role rule of the
    matching workflow action before anything is written. Field changes
    land first so a publish reserves the updated amount. Writes a single
    UPDATED activity.
    """
    if not can_manage_bounty(bounty, actor_pubkey, role):
        raise ForbiddenError("Only the creator or a workspace admin can update this bounty")

    changes = _clean(data.model_dump(exclude_unset=True))
    target = changes.pop("status", None)
    assignee_pubkey = changes.pop("assignee_pubkey", None)
    for required in ("title", "description", "deliverables", "amount", "tags", "coding_languages"):
        if changes.get(required, "") is None:
            del changes[required]

    if target is not None and BountyStatus(target).value == bounty.status:
        target = None
    if target is not None:
        target = BountyStatus(target)
        _guard_status_change(bounty, target, actor_pubkey, role, assignee_pubkey)

    if "amount" in changes and changes["amount"] != bounty.amount:
        if bounty.status != BountyStatus.DRAFT:
            raise BadRequestError("Amount can only be changed while the bounty is a draft")

    applied = {}
    for field_name, value in changes.items():
        if getattr(bounty, field_name) != value:
            setattr(bounty, field_name, value)
            applied[field_name] = value

    status_change = None
    if target is not None:
        result = bounty_workflow_service.transition_bounty(
            db, bounty, target, actor_pubkey, assignee_pubkey=assignee_pubkey
        )
        status_change = {"from": result.old_status.value, "to": result.new_status.value}

    if not applied and status_change is None:
        return bounty
    db.flush()

    details = {"changes": applied}
    if status_change:
        details["statusChange"] = status_change
    activity_service.log_bounty_activity(
        db, bounty.id, BountyActivityAction.UPDATED, actor_pubkey, details
    )
    return bounty


def delete_bounty(
    db: Session,
    bounty: Bounty,
    actor_pubkey: str,
    role: WorkspaceRole | None,
) -> None:
    """Soft-delete; only the creator or an OWNER, and never for work in flight."""
    if not can_delete_bounty(bounty, actor_pubkey, role):
        raise ForbiddenError("Only the creator or a workspace owner can delete this bounty")
    if bounty.status not in DELETABLE_BOUNTY_STATUSES:
        raise BadRequestError(
            f"Cannot delete a bounty with status {bounty.status}",
            details={"allowedStatuses": sorted(s.value for s in DELETABLE_BOUNTY_STATUSES)},
        )
    if bounty.status in RESERVED_STATUSES:
        budget_service.release_for_bounty(db, bounty)
    bounty.soft_delete()
    db.flush()
    logger.info("Bounty soft-deleted", extra={"bounty_id": str(bounty.id)})
