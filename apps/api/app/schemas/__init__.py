"""Pydantic schemas for API request/response models."""

from app.schemas.admin import PlatformStats, WorkspaceStats
from app.schemas.auth import CallerSession
from app.schemas.bounty import (
    AssignRequest,
    BountyActivityRead,
    BountyCreate,
    BountyRead,
    BountyRequestCreate,
    BountyRequestRead,
    BountyRequestReview,
    BountyUpdate,
    CancelRequest,
    CommentCreate,
    CommentRead,
    CommentUpdate,
    ProofCreate,
    ProofRead,
    ProofReview,
    TimingRead,
)
from app.schemas.ledger import BudgetMovement, BudgetRead, TransactionRead
from app.schemas.notification import NotificationRead
from app.schemas.user import (
    LeaderboardEntry,
    UserProfile,
    UserRead,
    UserStats,
    UserSummary,
    UsernameAvailability,
    UserUpdate,
)
from app.schemas.workspace import (
    MemberAdd,
    MemberRead,
    MemberRoleUpdate,
    WorkspaceActivityRead,
    WorkspaceCreate,
    WorkspaceListItem,
    WorkspaceRead,
    WorkspaceUpdate,
)
