"""Enum definitions for application constants."""

from app.db.enums.bounties import (
    BountyActivityAction,
    BountyRequestStatus,
    BountySortField,
    BountyStatus,
    ProofStatus,
)
from app.db.enums.ledger import TransactionStatus, TransactionType
from app.db.enums.notifications import NotificationType
from app.db.enums.workspaces import WorkspaceActivityAction, WorkspaceRole

DEFAULT_BOUNTY_STATUS = BountyStatus.DRAFT
DEFAULT_MEMBER_ROLE = WorkspaceRole.CONTRIBUTOR

__all__ = [
    "BountyActivityAction",
    "BountyRequestStatus",
    "BountySortField",
    "BountyStatus",
    "DEFAULT_BOUNTY_STATUS",
    "DEFAULT_MEMBER_ROLE",
    "NotificationType",
    "ProofStatus",
    "TransactionStatus",
    "TransactionType",
    "WorkspaceActivityAction",
    "WorkspaceRole",
]
