from datetime import datetime, timezone

from sqlalchemy import DateTime, JSON, select
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utc_now, onupdate=utc_now, nullable=False
    )


class SoftDeleteMixin:
    """
    Tombstone lifecycle via a nullable deleted_at.

    Reads go through live() so tombstoned rows never leak into results.
    """
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True, default=None)

    @classmethod
    def live(cls):
        """SELECT over rows that are not soft-deleted."""
        return select(cls).where(cls.deleted_at.is_(None))

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self) -> None:
        self.deleted_at = utc_now()
