"""Budget and transaction schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from app.db.enums import TransactionStatus, TransactionType
from app.schemas.common import CamelModel


class BudgetRead(CamelModel):
    workspace_id: UUID
    total_budget: int
    available_budget: int
    reserved_budget: int
    paid_budget: int
    updated_at: datetime


class BudgetMovement(CamelModel):
    """Deposit or withdrawal request (satoshis)."""

    amount: int = Field(..., ge=1)
    memo: str | None = Field(None, max_length=500)


class TransactionRead(CamelModel):
    id: UUID
    workspace_id: UUID
    bounty_id: UUID | None = None
    type: TransactionType
    amount: int
    from_user_pubkey: str | None = None
    to_user_pubkey: str | None = None
    status: TransactionStatus
    memo: str | None = None
    error_message: str | None = None
    created_at: datetime
    completed_at: datetime | None = None
