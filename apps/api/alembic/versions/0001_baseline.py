"""Baseline migration - users, workspaces, bounties and ledger

Revision ID: 0001_baseline
Revises: 
Create Date: 2026-10-19

Creates every table of the bounty platform. Column types are portable
(UUID/JSON fall back to CHAR/JSON outside Postgres).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _ts(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def _id() -> sa.Column:
    return sa.Column("id", sa.Uuid(), primary_key=True)


def upgrade() -> None:
    """Create all tables."""

    # ==========================================================================
    # Users
    # ==========================================================================
    op.create_table(
        "users",
        _id(),
        sa.Column("pubkey", sa.String(66), nullable=False, unique=True),
        sa.Column("username", sa.String(20), nullable=False, unique=True),
        sa.Column("alias", sa.String(100)),
        sa.Column("description", sa.Text()),
        sa.Column("avatar_url", sa.String(500)),
        sa.Column("contact_key", sa.String(255)),
        sa.Column("route_hint", sa.String(255)),
        sa.Column("github_username", sa.String(100)),
        sa.Column("github_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("twitter_username", sa.String(100)),
        sa.Column("twitter_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _ts("last_login", nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
        _ts("deleted_at", nullable=True),
    )
    op.create_index("ix_users_deleted_at", "users", ["deleted_at"])

    # ==========================================================================
    # Workspaces
    # ==========================================================================
    op.create_table(
        "workspaces",
        _id(),
        sa.Column("name", sa.String(50), nullable=False, unique=True),
        sa.Column("owner_pubkey", sa.String(66), sa.ForeignKey("users.pubkey"), nullable=False),
        sa.Column("description", sa.String(120)),
        sa.Column("mission", sa.Text()),
        sa.Column("avatar_url", sa.String(500)),
        sa.Column("website_url", sa.String(500)),
        sa.Column("github_url", sa.String(500)),
        _ts("created_at"),
        _ts("updated_at"),
        _ts("deleted_at", nullable=True),
    )
    op.create_index("ix_workspaces_deleted_at", "workspaces", ["deleted_at"])

    op.create_table(
        "workspace_members",
        _id(),
        sa.Column(
            "workspace_id", sa.Uuid(),
            sa.ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "user_pubkey", sa.String(66),
            sa.ForeignKey("users.pubkey", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("role", sa.String(20), nullable=False),
        _ts("joined_at"),
        sa.UniqueConstraint("workspace_id", "user_pubkey", name="uq_workspace_member"),
    )
    op.create_index("ix_workspace_members_user", "workspace_members", ["user_pubkey"])

    op.create_table(
        "workspace_budgets",
        _id(),
        sa.Column(
            "workspace_id", sa.Uuid(),
            sa.ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False, unique=True,
        ),
        sa.Column("total_budget", sa.BigInteger(), nullable=False),
        sa.Column("available_budget", sa.BigInteger(), nullable=False),
        sa.Column("reserved_budget", sa.BigInteger(), nullable=False),
        sa.Column("paid_budget", sa.BigInteger(), nullable=False),
        _ts("updated_at"),
        sa.CheckConstraint("available_budget >= 0", name="ck_budget_available_non_negative"),
        sa.CheckConstraint("reserved_budget >= 0", name="ck_budget_reserved_non_negative"),
    )

    op.create_table(
        "workspace_activities",
        _id(),
        sa.Column(
            "workspace_id", sa.Uuid(),
            sa.ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("user_pubkey", sa.String(66), nullable=False),
        sa.Column("action", sa.String(30), nullable=False),
        sa.Column("details", JSONType),
        _ts("timestamp"),
    )
    op.create_index(
        "ix_workspace_activities_workspace_ts", "workspace_activities", ["workspace_id", "timestamp"]
    )

    # ==========================================================================
    # Bounties
    # ==========================================================================
    op.create_table(
        "bounties",
        _id(),
        sa.Column(
            "workspace_id", sa.Uuid(),
            sa.ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("creator_pubkey", sa.String(66), sa.ForeignKey("users.pubkey"), nullable=False),
        sa.Column("assignee_pubkey", sa.String(66), sa.ForeignKey("users.pubkey")),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("deliverables", sa.Text(), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("tags", JSONType, nullable=False),
        sa.Column("coding_languages", JSONType, nullable=False),
        sa.Column("estimated_hours", sa.Integer()),
        _ts("estimated_completion_date", nullable=True),
        sa.Column("github_issue_url", sa.String(500)),
        sa.Column("loom_video_url", sa.String(500)),
        _ts("assigned_at", nullable=True),
        _ts("completed_at", nullable=True),
        _ts("paid_at", nullable=True),
        _ts("work_started_at", nullable=True),
        _ts("work_closed_at", nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
        _ts("deleted_at", nullable=True),
    )
    op.create_index("ix_bounties_workspace_status", "bounties", ["workspace_id", "status"])
    op.create_index("ix_bounties_assignee", "bounties", ["assignee_pubkey"])
    op.create_index("ix_bounties_creator", "bounties", ["creator_pubkey"])
    op.create_index("ix_bounties_deleted_at", "bounties", ["deleted_at"])

    op.create_table(
        "bounty_proofs",
        _id(),
        sa.Column(
            "bounty_id", sa.Uuid(),
            sa.ForeignKey("bounties.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "submitted_by_pubkey", sa.String(66), sa.ForeignKey("users.pubkey"), nullable=False
        ),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("proof_url", sa.String(500), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("review_notes", sa.Text()),
        sa.Column("reviewed_by_pubkey", sa.String(66)),
        _ts("reviewed_at", nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_bounty_proofs_bounty", "bounty_proofs", ["bounty_id"])

    op.create_table(
        "bounty_requests",
        _id(),
        sa.Column(
            "bounty_id", sa.Uuid(),
            sa.ForeignKey("bounties.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "requester_pubkey", sa.String(66), sa.ForeignKey("users.pubkey"), nullable=False
        ),
        sa.Column("message", sa.Text()),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("review_note", sa.Text()),
        sa.Column("reviewed_by_pubkey", sa.String(66)),
        _ts("reviewed_at", nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
        sa.UniqueConstraint("bounty_id", "requester_pubkey", name="uq_bounty_request"),
    )
    op.create_index("ix_bounty_requests_status", "bounty_requests", ["bounty_id", "status"])

    op.create_table(
        "bounty_comments",
        _id(),
        sa.Column(
            "bounty_id", sa.Uuid(),
            sa.ForeignKey("bounties.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("author_pubkey", sa.String(66), sa.ForeignKey("users.pubkey"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _ts("created_at"),
        _ts("updated_at"),
        _ts("deleted_at", nullable=True),
    )
    op.create_index("ix_bounty_comments_bounty", "bounty_comments", ["bounty_id", "created_at"])

    op.create_table(
        "bounty_activities",
        _id(),
        sa.Column(
            "bounty_id", sa.Uuid(),
            sa.ForeignKey("bounties.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("user_pubkey", sa.String(66), nullable=False),
        sa.Column("action", sa.String(30), nullable=False),
        sa.Column("details", JSONType),
        _ts("timestamp"),
    )
    op.create_index(
        "ix_bounty_activities_bounty_ts", "bounty_activities", ["bounty_id", "timestamp"]
    )

    # ==========================================================================
    # Ledger / notifications
    # ==========================================================================
    op.create_table(
        "transactions",
        _id(),
        sa.Column(
            "workspace_id", sa.Uuid(),
            sa.ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("bounty_id", sa.Uuid(), sa.ForeignKey("bounties.id", ondelete="SET NULL")),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("from_user_pubkey", sa.String(66)),
        sa.Column("to_user_pubkey", sa.String(66)),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("memo", sa.Text()),
        sa.Column("error_message", sa.Text()),
        _ts("created_at"),
        _ts("completed_at", nullable=True),
    )
    op.create_index(
        "ix_transactions_workspace_created", "transactions", ["workspace_id", "created_at"]
    )
    op.create_index("ix_transactions_bounty", "transactions", ["bounty_id"])

    op.create_table(
        "notifications",
        _id(),
        sa.Column(
            "user_pubkey", sa.String(66),
            sa.ForeignKey("users.pubkey", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("related_entity_id", sa.String(64)),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _ts("created_at"),
    )
    op.create_index("ix_notifications_user_read", "notifications", ["user_pubkey", "read"])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    for table in (
        "notifications",
        "transactions",
        "bounty_activities",
        "bounty_comments",
        "bounty_requests",
        "bounty_proofs",
        "bounties",
        "workspace_activities",
        "workspace_budgets",
        "workspace_members",
        "workspaces",
        "users",
    ):
        op.drop_table(table)
