"""Earnings leaderboard."""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.db.models import Bounty, User
from app.services.user_service import EARNED_STATUSES
from app.utils.pagination import PaginationParams


def get_leaderboard(db: Session, pagination: PaginationParams) -> tuple[list[dict], int]:
    """Users ranked by sats earned on PAID/COMPLETED bounties."""
    earned = func.sum(Bounty.amount).label("total_earned")
    stmt = (
        select(
            User.pubkey,
            User.username,
            User.alias,
            User.avatar_url,
            earned,
            func.count(Bounty.id).label("bounties_completed"),
            func.max(Bounty.completed_at).label("last_completed_at"),
        )
        .join(Bounty, Bounty.assignee_pubkey == User.pubkey)
        .where(
            Bounty.status.in_(EARNED_STATUSES),
            Bounty.deleted_at.is_(None),
            User.deleted_at.is_(None),
        )
        .group_by(User.pubkey, User.username, User.alias, User.avatar_url)
    )

    total = db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()
    rows = db.execute(
        stmt.order_by(earned.desc(), User.username.asc())
        .offset(pagination.offset)
        .limit(pagination.page_size)
    ).all()

    entries = [
        {
            "rank": pagination.offset + index + 1,
            "pubkey": row.pubkey,
            "username": row.username,
            "alias": row.alias,
            "avatar_url": row.avatar_url,
            "total_earned": int(row.total_earned or 0),
            "bounties_completed": row.bounties_completed,
            "last_completed_at": row.last_completed_at,
        }
        for index, row in enumerate(rows)
    ]
    return entries, total
