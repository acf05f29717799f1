"""Workspace role hierarchy and composed authorization predicates.

Precedence: OWNER > ADMIN > CONTRIBUTOR > VIEWER.
A caller with no membership row has no role at all (None), which is
distinct from VIEWER and never satisfies any threshold.
"""

from app.core.config import settings
from app.db.enums import BountyStatus, WorkspaceRole


ROLE_HIERARCHY: dict[WorkspaceRole, int] = {
    WorkspaceRole.OWNER: 4,
    WorkspaceRole.ADMIN: 3,
    WorkspaceRole.CONTRIBUTOR: 2,
    WorkspaceRole.VIEWER: 1,
}


def role_rank(role: WorkspaceRole | str | None) -> int:
    """Numeric rank of a role; 0 for non-members or unknown values."""
    if role is None or not WorkspaceRole.has_value(role):
        return 0
    return ROLE_HIERARCHY[WorkspaceRole(role)]


def has_role(role: WorkspaceRole | str | None, required: WorkspaceRole) -> bool:
    """True iff rank(role) >= rank(required). Non-members never qualify."""
    if role is None:
        return False
    return role_rank(role) >= ROLE_HIERARCHY[required]


def is_member(role: WorkspaceRole | str | None) -> bool:
    return role_rank(role) > 0


def is_super_admin(pubkey: str | None) -> bool:
    """Platform operator check against SUPER_ADMINS."""
    return bool(pubkey) and pubkey.lower() in settings.super_admins_list


# =============================================================================
# Composed predicates (bounty-scoped)
# =============================================================================

DELETABLE_BOUNTY_STATUSES = frozenset(
    {BountyStatus.DRAFT, BountyStatus.OPEN, BountyStatus.CANCELLED}
)


def can_manage_bounty(bounty, pubkey: str, role) -> bool:
    """Update/cancel: creator OR role >= ADMIN."""
    return bounty.creator_pubkey == pubkey or has_role(role, WorkspaceRole.ADMIN)


def can_delete_bounty(bounty, pubkey: str, role) -> bool:
    """Delete: creator OR OWNER (status is checked separately)."""
    return bounty.creator_pubkey == pubkey or has_role(role, WorkspaceRole.OWNER)


def can_view_bounty(bounty, pubkey: str | None, role) -> bool:
    """Drafts are visible only to their creator and workspace members."""
    if bounty.status != BountyStatus.DRAFT:
        return True
    return bounty.creator_pubkey == pubkey or is_member(role)


def can_submit_proof(bounty, pubkey: str) -> bool:
    """Only the current assignee of an ASSIGNED bounty."""
    return (
        bounty.assignee_pubkey is not None
        and bounty.assignee_pubkey == pubkey
        and bounty.status == BountyStatus.ASSIGNED
    )


def can_delete_proof(proof, pubkey: str, role) -> bool:
    """Submitter or workspace OWNER (ACCEPTED proofs are checked separately)."""
    return proof.submitted_by_pubkey == pubkey or has_role(role, WorkspaceRole.OWNER)
