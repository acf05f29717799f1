"""Workspace ledger transactions."""

import uuid
from datetime import datetime

from sqlalchemy import BigInteger, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, utc_now
from app.db.enums import TransactionStatus


class Transaction(Base):
    """
    Ledger entry for a workspace budget movement.

    Amounts are stored satoshi integers; no payment rail is attached.
    """

    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_workspace_created", "workspace_id", "created_at"),
        Index("ix_transactions_bounty", "bounty_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    workspace_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False
    )
    bounty_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("bounties.id", ondelete="SET NULL"), nullable=True
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    from_user_pubkey: Mapped[str | None] = mapped_column(String(66), nullable=True)
    to_user_pubkey: Mapped[str | None] = mapped_column(String(66), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=TransactionStatus.PENDING.value, nullable=False
    )
    memo: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utc_now, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
