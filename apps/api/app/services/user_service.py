"""User provisioning, profile and account lifecycle service."""

import logging
from collections import Counter

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, ForbiddenError, NotFoundError
from app.core.status_rules import ACTIVE_STATUSES
from app.db.base import utc_now
from app.db.enums import BountyStatus
from app.db.models import Bounty, User, Workspace, WorkspaceMember
from app.schemas.user import UserUpdate
from app.utils.datetimes import seconds_between
from app.utils.pagination import PaginationParams, paginate_query

logger = logging.getLogger(__name__)

EARNED_STATUSES = (BountyStatus.PAID.value, BountyStatus.COMPLETED.value)
USER_SORT_COLUMNS = {
    "createdAt": User.created_at,
    "username": User.username,
    "lastLogin": User.last_login,
}


class AccountDeletionBlockedError(ConflictError):
    """Account still owns workspaces or holds in-flight bounties."""

    pass


# =============================================================================
# Lookup / provisioning
# =============================================================================


def get_user(db: Session, pubkey: str) -> User | None:
    """Live (not soft-deleted) user by pubkey."""
    return db.execute(User.live().where(User.pubkey == pubkey)).scalar_one_or_none()


def require_user(db: Session, pubkey: str) -> User:
    user = get_user(db, pubkey)
    if not user:
        raise NotFoundError("User not found")
    return user


def _default_username(db: Session, pubkey: str) -> str:
    username = f"user_{pubkey[:8]}"
    if is_username_available(db, username):
        return username
    return f"user_{pubkey[:14]}"


def get_or_provision_user(db: Session, pubkey: str) -> User:
    """
    Return the user for pubkey, creating it on first sight.
    
    Soft-deleted users are returned as-is so the caller can reject them.
    Commits on creation since identity resolution happens before any
    handler-level transaction.
    """
    user = db.execute(select(User).where(User.pubkey == pubkey)).scalar_one_or_none()
    if user:
        return user

    user = User(pubkey=pubkey, username=_default_username(db, pubkey), last_login=utc_now())
    try:
        db.add(user)
        db.commit()
    except IntegrityError:
        # Concurrent first request for the same pubkey
        db.rollback()
        return db.execute(select(User).where(User.pubkey == pubkey)).scalar_one()
    logger.info("Provisioned user %s", user.username)
    return user


def is_username_available(db: Session, username: str, exclude_pubkey: str | None = None) -> bool:
    """Case-insensitive availability check."""
    stmt = select(User.pubkey).where(func.lower(User.username) == username.lower())
    if exclude_pubkey:
        stmt = stmt.where(User.pubkey != exclude_pubkey)
    return db.execute(stmt.limit(1)).first() is None


def list_users(
    db: Session,
    pagination: PaginationParams,
    search: str | None = None,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
) -> tuple[list[User], int]:
    stmt = User.live()
    if search:
        pattern = f"%{search.lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(User.username).like(pattern),
                func.lower(User.alias).like(pattern),
                func.lower(User.description).like(pattern),
            )
        )
    column = USER_SORT_COLUMNS.get(sort_by, User.created_at)
    stmt = stmt.order_by(column.asc() if sort_order == "asc" else column.desc(), User.id)
    return paginate_query(db, stmt, pagination)


# =============================================================================
# Profile
# =============================================================================


def get_profile_counts(db: Session, pubkey: str) -> dict[str, int]:
    live_bounties = select(Bounty).where(Bounty.deleted_at.is_(None)).subquery()

    def count(*criteria) -> int:
        return db.execute(
            select(func.count()).select_from(live_bounties).where(*criteria)
        ).scalar_one()

    earned = db.execute(
        select(func.coalesce(func.sum(Bounty.amount), 0)).where(
            Bounty.assignee_pubkey == pubkey,
            Bounty.status.in_(EARNED_STATUSES),
            Bounty.deleted_at.is_(None),
        )
    ).scalar_one()
    return {
        "bounties_created": count(live_bounties.c.creator_pubkey == pubkey),
        "bounties_assigned": count(live_bounties.c.assignee_pubkey == pubkey),
        "bounties_completed": count(
            live_bounties.c.assignee_pubkey == pubkey,
            live_bounties.c.status.in_(EARNED_STATUSES),
        ),
        "total_earned": int(earned),
        "workspace_count": count_workspaces(db, pubkey),
    }


def count_workspaces(db: Session, pubkey: str) -> int:
    return db.execute(
        select(func.count())
        .select_from(WorkspaceMember)
        .join(Workspace, Workspace.id == WorkspaceMember.workspace_id)
        .where(WorkspaceMember.user_pubkey == pubkey, Workspace.deleted_at.is_(None))
    ).scalar_one()


def update_profile(db: Session, caller_pubkey: str, pubkey: str, data: UserUpdate) -> User:
    """Update the caller's own profile."""
    if caller_pubkey != pubkey:
        raise ForbiddenError("You can only update your own profile")
    user = require_user(db, pubkey)

    changes = data.model_dump(exclude_unset=True)
    if changes.get("username", "") is None:
        del changes["username"]  # username is required; null means "leave as is"
    username = changes.get("username")
    if username and not is_username_available(db, username, exclude_pubkey=pubkey):
        raise ConflictError("Username is already taken")

    for field, value in changes.items():
        setattr(user, field, value)
    db.flush()
    return user


def delete_account(db: Session, caller_pubkey: str, pubkey: str) -> User:
    """
    Soft-delete the caller's own account.
    
    Blocked while the user owns live workspaces or is assigned
    bounties that are ASSIGNED or IN_REVIEW.
    """
    if caller_pubkey != pubkey:
        raise ForbiddenError("You can only delete your own account")
    user = require_user(db, pubkey)

    owned = db.execute(
        select(func.count()).select_from(Workspace).where(
            Workspace.owner_pubkey == pubkey, Workspace.deleted_at.is_(None)
        )
    ).scalar_one()
    if owned:
        raise AccountDeletionBlockedError(
            "Transfer or delete your workspaces before deleting your account",
            details={"ownedWorkspaces": owned},
        )

    in_flight = db.execute(
        select(func.count()).select_from(Bounty).where(
            Bounty.assignee_pubkey == pubkey,
            Bounty.status.in_((BountyStatus.ASSIGNED.value, BountyStatus.IN_REVIEW.value)),
            Bounty.deleted_at.is_(None),
        )
    ).scalar_one()
    if in_flight:
        raise AccountDeletionBlockedError(
            "Finish or unclaim your assigned bounties before deleting your account",
            details={"activeBounties": in_flight},
        )

    user.soft_delete()
    db.flush()
    logger.info("Soft-deleted user %s", user.username)
    return user


# =============================================================================
# Stats / bounty listings
# =============================================================================


def get_stats(db: Session, pubkey: str) -> dict:
    require_user(db, pubkey)
    counts = get_profile_counts(db, pubkey)

    finished = db.execute(
        select(Bounty).where(
            Bounty.assignee_pubkey == pubkey,
            Bounty.status.in_(EARNED_STATUSES),
            Bounty.deleted_at.is_(None),
        )
    ).scalars().all()

    durations = [
        seconds_between(b.assigned_at, b.completed_at)
        for b in finished
        if b.assigned_at and b.completed_at
    ]
    average_hours = (
        round(sum(durations) / len(durations) / 3600, 2) if durations else None
    )
    languages = Counter(lang for b in finished for lang in (b.coding_languages or []))

    active = db.execute(
        select(func.count()).select_from(Bounty).where(
            Bounty.assignee_pubkey == pubkey,
            Bounty.status.in_([s.value for s in ACTIVE_STATUSES]),
            Bounty.deleted_at.is_(None),
        )
    ).scalar_one()

    return {
        "pubkey": pubkey,
        "total_earned": counts["total_earned"],
        "bounties_completed": counts["bounties_completed"],
        "bounties_created": counts["bounties_created"],
        "bounties_assigned": counts["bounties_assigned"],
        "active_bounties": active,
        "workspace_count": counts["workspace_count"],
        "average_completion_hours": average_hours,
        "top_languages": [
            {"language": lang, "count": n} for lang, n in languages.most_common(5)
        ],
    }


def list_user_bounties(
    db: Session,
    pubkey: str,
    pagination: PaginationParams,
    relation: str,
    viewer_pubkey: str | None = None,
) -> tuple[list[Bounty], int]:
    """Bounties created by or assigned to a user; drafts only for the user themself."""
    require_user(db, pubkey)
    column = Bounty.creator_pubkey if relation == "created" else Bounty.assignee_pubkey
    stmt = (
        Bounty.live()
        .join(Workspace, Workspace.id == Bounty.workspace_id)
        .where(column == pubkey, Workspace.deleted_at.is_(None))
    )
    if viewer_pubkey != pubkey:
        stmt = stmt.where(Bounty.status != BountyStatus.DRAFT.value)
    stmt = stmt.order_by(Bounty.created_at.desc(), Bounty.id)
    return paginate_query(db, stmt, pagination)
