"""Workspace membership service: roles, last-owner invariant and member audit."""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.errors import BadRequestError, ConflictError, NotFoundError
from app.db.enums import NotificationType, WorkspaceActivityAction, WorkspaceRole
from app.db.models import Workspace, WorkspaceMember
from app.services import activity_service, notification_service, user_service

logger = logging.getLogger(__name__)


class LastOwnerError(BadRequestError):
    """Operation would leave the workspace without an OWNER."""

    def __init__(self):
        super().__init__("Cannot remove the last owner from the workspace")


class MemberExistsError(ConflictError):
    """User is already a member of the workspace."""

    pass


# =============================================================================
# Lookups
# =============================================================================


def get_member(db: Session, workspace_id: UUID, pubkey: str) -> WorkspaceMember | None:
    return db.execute(
        select(WorkspaceMember).where(
            WorkspaceMember.workspace_id == workspace_id,
            WorkspaceMember.user_pubkey == pubkey,
        )
    ).scalar_one_or_none()


def get_role(db: Session, workspace_id: UUID, pubkey: str | None) -> WorkspaceRole | None:
    """Caller's role in a workspace, or None when there is no membership row."""
    if not pubkey:
        return None
    role = db.execute(
        select(WorkspaceMember.role).where(
            WorkspaceMember.workspace_id == workspace_id,
            WorkspaceMember.user_pubkey == pubkey,
        )
    ).scalar_one_or_none()
    if role is None or not WorkspaceRole.has_value(role):
        return None
    return WorkspaceRole(role)


def list_members(db: Session, workspace_id: UUID) -> list[WorkspaceMember]:
    return list(
        db.execute(
            select(WorkspaceMember)
            .where(WorkspaceMember.workspace_id == workspace_id)
            .order_by(WorkspaceMember.joined_at, WorkspaceMember.id)
        ).scalars().all()
    )


def count_owners(db: Session, workspace_id: UUID) -> int:
    return db.execute(
        select(func.count())
        .select_from(WorkspaceMember)
        .where(
            WorkspaceMember.workspace_id == workspace_id,
            WorkspaceMember.role == WorkspaceRole.OWNER.value,
        )
    ).scalar_one()


def _require_member(db: Session, workspace_id: UUID, pubkey: str) -> WorkspaceMember:
    member = get_member(db, workspace_id, pubkey)
    if not member:
        raise NotFoundError("Member not found")
    return member


def _ensure_owner_remains(db: Session, member: WorkspaceMember) -> None:
    # Read-then-write; concurrent demotions can still race
    if member.role == WorkspaceRole.OWNER and count_owners(db, member.workspace_id) <= 1:
        raise LastOwnerError()


def _reassign_primary_owner(db: Session, workspace: Workspace, leaving_pubkey: str) -> None:
    """Keep workspace.owner_pubkey pointing at a remaining OWNER."""
    if workspace.owner_pubkey != leaving_pubkey:
        return
    successor = db.execute(
        select(WorkspaceMember.user_pubkey)
        .where(
            WorkspaceMember.workspace_id == workspace.id,
            WorkspaceMember.role == WorkspaceRole.OWNER.value,
            WorkspaceMember.user_pubkey != leaving_pubkey,
        )
        .order_by(WorkspaceMember.joined_at)
        .limit(1)
    ).scalar_one_or_none()
    if successor:
        workspace.owner_pubkey = successor


# =============================================================================
# Mutations
# =============================================================================


def add_member(
    db: Session,
    workspace: Workspace,
    actor_pubkey: str,
    user_pubkey: str,
    role: WorkspaceRole,
) -> WorkspaceMember:
    """Add an existing user to the workspace."""
    user_service.require_user(db, user_pubkey)
    if get_member(db, workspace.id, user_pubkey):
        raise MemberExistsError("User is already a member of this workspace")

    member = WorkspaceMember(
        workspace_id=workspace.id,
        user_pubkey=user_pubkey,
        role=role.value,
    )
    db.add(member)
    db.flush()

    activity_service.log_workspace_activity(
        db,
        workspace.id,
        WorkspaceActivityAction.MEMBER_ADDED,
        actor_pubkey,
        {"memberPubkey": user_pubkey, "role": role.value},
    )
    notification_service.notify(
        db,
        user_pubkey,
        NotificationType.MEMBER_ADDED,
        "Added to workspace",
        f"You were added to {workspace.name} as {role.value}",
        workspace.id,
    )
    return member


def change_role(
    db: Session,
    workspace: Workspace,
    actor_pubkey: str,
    user_pubkey: str,
    new_role: WorkspaceRole,
) -> WorkspaceMember:
    member = _require_member(db, workspace.id, user_pubkey)
    old_role = member.role
    if old_role == new_role.value:
        return member

    if new_role != WorkspaceRole.OWNER:
        _ensure_owner_remains(db, member)
        _reassign_primary_owner(db, workspace, user_pubkey)

    member.role = new_role.value
    db.flush()

    activity_service.log_workspace_activity(
        db,
        workspace.id,
        WorkspaceActivityAction.ROLE_CHANGED,
        actor_pubkey,
        {"memberPubkey": user_pubkey, "oldRole": old_role, "newRole": new_role.value},
    )
    return member


def remove_member(
    db: Session,
    workspace: Workspace,
    actor_pubkey: str,
    user_pubkey: str,
) -> None:
    member = _require_member(db, workspace.id, user_pubkey)
    _ensure_owner_remains(db, member)
    _reassign_primary_owner(db, workspace, user_pubkey)

    removed_role = member.role
    db.delete(member)
    db.flush()

    activity_service.log_workspace_activity(
        db,
        workspace.id,
        WorkspaceActivityAction.MEMBER_REMOVED,
        actor_pubkey,
        {"memberPubkey": user_pubkey, "role": removed_role},
    )
    notification_service.notify(
        db,
        user_pubkey,
        NotificationType.MEMBER_REMOVED,
        "Removed from workspace",
        f"You were removed from {workspace.name}",
        workspace.id,
    )
    logger.info(
        "Member removed",
        extra={"workspace_id": str(workspace.id), "pubkey": user_pubkey[:12]},
    )
