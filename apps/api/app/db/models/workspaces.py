"""Workspace, membership, budget and workspace audit models."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, JSONType, SoftDeleteMixin, TimestampMixin, utc_now
from app.db.enums import DEFAULT_MEMBER_ROLE
from app.db.models.users import User

if TYPE_CHECKING:
    from app.db.models.bounties import Bounty


class Workspace(TimestampMixin, SoftDeleteMixin, Base):
    """
    A team container owning bounties, members and a budget.

    All workspace children must be scoped by workspace_id in queries.
    """

    __tablename__ = "workspaces"
    __table_args__ = (Index("ix_workspaces_deleted_at", "deleted_at"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    owner_pubkey: Mapped[str] = mapped_column(
        String(66), ForeignKey("users.pubkey"), nullable=False
    )
    description: Mapped[str | None] = mapped_column(String(120), nullable=True)
    mission: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    website_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    github_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Relationships
    members: Mapped[list["WorkspaceMember"]] = relationship(
        back_populates="workspace", cascade="all, delete-orphan"
    )
    budget: Mapped[Optional["WorkspaceBudget"]] = relationship(
        back_populates="workspace", uselist=False, cascade="all, delete-orphan"
    )
    bounties: Mapped[list["Bounty"]] = relationship(back_populates="workspace")


class WorkspaceMember(Base):
    """Membership of a user in a workspace with a role."""

    __tablename__ = "workspace_members"
    __table_args__ = (
        UniqueConstraint("workspace_id", "user_pubkey", name="uq_workspace_member"),
        Index("ix_workspace_members_user", "user_pubkey"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    workspace_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False
    )
    user_pubkey: Mapped[str] = mapped_column(
        String(66), ForeignKey("users.pubkey", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_MEMBER_ROLE.value, nullable=False
    )
    joined_at: Mapped[datetime] = mapped_column(default=utc_now, nullable=False)

    workspace: Mapped["Workspace"] = relationship(back_populates="members")
    user: Mapped["User"] = relationship(lazy="joined")


class WorkspaceBudget(Base):
    """Satoshi budget of a workspace. Invariant: total = available + reserved + paid."""

    __tablename__ = "workspace_budgets"
    __table_args__ = (
        CheckConstraint("available_budget >= 0", name="ck_budget_available_non_negative"),
        CheckConstraint("reserved_budget >= 0", name="ck_budget_reserved_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    workspace_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("workspaces.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    total_budget: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    available_budget: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    reserved_budget: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    paid_budget: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utc_now, onupdate=utc_now, nullable=False
    )

    workspace: Mapped["Workspace"] = relationship(back_populates="budget")


class WorkspaceActivity(Base):
    """Append-only audit row for workspace-level changes."""

    __tablename__ = "workspace_activities"
    __table_args__ = (
        Index("ix_workspace_activities_workspace_ts", "workspace_id", "timestamp"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    workspace_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False
    )
    user_pubkey: Mapped[str] = mapped_column(String(66), nullable=False)
    action: Mapped[str] = mapped_column(String(30), nullable=False)
    details: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(default=utc_now, nullable=False)
