"""Super-admin response schemas."""

from uuid import UUID

from app.schemas.common import CamelModel
from app.schemas.ledger import BudgetRead


class PlatformStats(CamelModel):
    total_users: int
    total_workspaces: int
    total_bounties: int
    bounties_by_status: dict[str, int]
    total_paid: int


class WorkspaceStats(CamelModel):
    workspace_id: UUID
    name: str
    member_count: int
    total_bounties: int
    bounties_by_status: dict[str, int]
    total_paid: int
    budget: BudgetRead
