"""User identity and profile models."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, SoftDeleteMixin, TimestampMixin


class User(TimestampMixin, SoftDeleteMixin, Base):
    """
    Application user, identified by a public key.

    Rows are provisioned on first authenticated request; the
    authentication handshake itself happens upstream.
    """

    __tablename__ = "users"
    __table_args__ = (Index("ix_users_deleted_at", "deleted_at"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    pubkey: Mapped[str] = mapped_column(String(66), unique=True, nullable=False)
    username: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    alias: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    contact_key: Mapped[str | None] = mapped_column(String(255), nullable=True)
    route_hint: Mapped[str | None] = mapped_column(String(255), nullable=True)
    github_username: Mapped[str | None] = mapped_column(String(100), nullable=True)
    github_verified: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    twitter_username: Mapped[str | None] = mapped_column(String(100), nullable=True)
    twitter_verified: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    last_login: Mapped[datetime | None] = mapped_column(nullable=True)
