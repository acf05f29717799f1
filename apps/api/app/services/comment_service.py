"""Bounty discussion comments."""

from uuid import UUID

from sqlalchemy.orm import Session

from app.core.errors import ForbiddenError, NotFoundError
from app.core.permissions import has_role
from app.db.enums import WorkspaceRole
from app.db.models import Bounty, BountyComment
from app.utils.pagination import PaginationParams, paginate_query


def list_comments(
    db: Session, bounty: Bounty, pagination: PaginationParams
) -> tuple[list[BountyComment], int]:
    stmt = (
        BountyComment.live()
        .where(BountyComment.bounty_id == bounty.id)
        .order_by(BountyComment.created_at.asc(), BountyComment.id)
    )
    return paginate_query(db, stmt, pagination)


def _get_comment(db: Session, bounty: Bounty, comment_id: UUID) -> BountyComment:
    comment = db.execute(
        BountyComment.live().where(
            BountyComment.id == comment_id, BountyComment.bounty_id == bounty.id
        )
    ).unique().scalar_one_or_none()
    if not comment:
        raise NotFoundError("Comment not found")
    return comment


def create_comment(
    db: Session,
    bounty: Bounty,
    author_pubkey: str,
    role: WorkspaceRole | None,
    content: str,
) -> BountyComment:
    if role is None:
        raise ForbiddenError("You must be a workspace member to comment")
    comment = BountyComment(bounty_id=bounty.id, author_pubkey=author_pubkey, content=content)
    db.add(comment)
    db.flush()
    return comment


def update_comment(
    db: Session, bounty: Bounty, comment_id: UUID, actor_pubkey: str, content: str
) -> BountyComment:
    comment = _get_comment(db, bounty, comment_id)
    if comment.author_pubkey != actor_pubkey:
        raise ForbiddenError("You can only edit your own comments")
    comment.content = content
    db.flush()
    return comment


def delete_comment(
    db: Session,
    bounty: Bounty,
    comment_id: UUID,
    actor_pubkey: str,
    role: WorkspaceRole | None,
) -> None:
    comment = _get_comment(db, bounty, comment_id)
    if comment.author_pubkey != actor_pubkey and not has_role(role, WorkspaceRole.ADMIN):
        raise ForbiddenError("Only the author or a workspace admin can delete this comment")
    comment.soft_delete()
    db.flush()
