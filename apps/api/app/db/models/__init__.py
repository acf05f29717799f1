"""SQLAlchemy ORM models."""

from app.db.models.bounties import (
    Bounty,
    BountyActivity,
    BountyComment,
    BountyProof,
    BountyRequest,
)
from app.db.models.ledger import Transaction
from app.db.models.notifications import Notification
from app.db.models.users import User
from app.db.models.workspaces import (
    Workspace,
    WorkspaceActivity,
    WorkspaceBudget,
    WorkspaceMember,
)

__all__ = [
    "Bounty",
    "BountyActivity",
    "BountyComment",
    "BountyProof",
    "BountyRequest",
    "Notification",
    "Transaction",
    "User",
    "Workspace",
    "WorkspaceActivity",
    "WorkspaceBudget",
    "WorkspaceMember",
]
