"""Bounty, proof, request, comment and bounty audit models."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, JSONType, SoftDeleteMixin, TimestampMixin, utc_now
from app.db.enums import (
    DEFAULT_BOUNTY_STATUS,
    BountyRequestStatus,
    ProofStatus,
)
from app.db.models.users import User
from app.db.models.workspaces import Workspace


class Bounty(TimestampMixin, SoftDeleteMixin, Base):
    """
    A unit of paid work inside a workspace.

    Status changes must go through app.core.status_rules; amount is in satoshis.
    """

    __tablename__ = "bounties"
    __table_args__ = (
        Index("ix_bounties_workspace_status", "workspace_id", "status"),
        Index("ix_bounties_assignee", "assignee_pubkey"),
        Index("ix_bounties_creator", "creator_pubkey"),
        Index("ix_bounties_deleted_at", "deleted_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    workspace_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False
    )
    creator_pubkey: Mapped[str] = mapped_column(
        String(66), ForeignKey("users.pubkey"), nullable=False
    )
    assignee_pubkey: Mapped[str | None] = mapped_column(
        String(66), ForeignKey("users.pubkey"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    deliverables: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_BOUNTY_STATUS.value, nullable=False
    )
    tags: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)
    coding_languages: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)
    estimated_hours: Mapped[int | None] = mapped_column(Integer, nullable=True)
    estimated_completion_date: Mapped[datetime | None] = mapped_column(nullable=True)
    github_issue_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    loom_video_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Lifecycle stamps
    assigned_at: Mapped[datetime | None] = mapped_column(nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)
    work_started_at: Mapped[datetime | None] = mapped_column(nullable=True)
    work_closed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    workspace: Mapped["Workspace"] = relationship(back_populates="bounties")
    creator: Mapped["User"] = relationship(foreign_keys=[creator_pubkey])
    assignee: Mapped[Optional["User"]] = relationship(foreign_keys=[assignee_pubkey])


class BountyProof(TimestampMixin, Base):
    """Proof of work submitted by the assignee."""

    __tablename__ = "bounty_proofs"
    __table_args__ = (Index("ix_bounty_proofs_bounty", "bounty_id"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    bounty_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bounties.id", ondelete="CASCADE"), nullable=False
    )
    submitted_by_pubkey: Mapped[str] = mapped_column(
        String(66), ForeignKey("users.pubkey"), nullable=False
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    proof_url: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=ProofStatus.PENDING.value, nullable=False
    )
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by_pubkey: Mapped[str | None] = mapped_column(String(66), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(nullable=True)


class BountyRequest(TimestampMixin, Base):
    """A prospective assignee asking to work on an OPEN bounty."""

    __tablename__ = "bounty_requests"
    __table_args__ = (
        UniqueConstraint("bounty_id", "requester_pubkey", name="uq_bounty_request"),
        Index("ix_bounty_requests_status", "bounty_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    bounty_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bounties.id", ondelete="CASCADE"), nullable=False
    )
    requester_pubkey: Mapped[str] = mapped_column(
        String(66), ForeignKey("users.pubkey"), nullable=False
    )
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=BountyRequestStatus.PENDING.value, nullable=False
    )
    review_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by_pubkey: Mapped[str | None] = mapped_column(String(66), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    requester: Mapped["User"] = relationship(lazy="joined")


class BountyComment(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "bounty_comments"
    __table_args__ = (Index("ix_bounty_comments_bounty", "bounty_id", "created_at"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    bounty_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bounties.id", ondelete="CASCADE"), nullable=False
    )
    author_pubkey: Mapped[str] = mapped_column(
        String(66), ForeignKey("users.pubkey"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)

    author: Mapped["User"] = relationship(lazy="joined")


class BountyActivity(Base):
    """Append-only audit row for bounty changes."""

    __tablename__ = "bounty_activities"
    __table_args__ = (
        Index("ix_bounty_activities_bounty_ts", "bounty_id", "timestamp"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    bounty_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bounties.id", ondelete="CASCADE"), nullable=False
    )
    user_pubkey: Mapped[str] = mapped_column(String(66), nullable=False)
    action: Mapped[str] = mapped_column(String(30), nullable=False)
    details: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(default=utc_now, nullable=False)
