"""In-app notification service."""

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.core.errors import ForbiddenError, NotFoundError
from app.db.enums import NotificationType
from app.db.models import Notification
from app.utils.pagination import PaginationParams, paginate_query


def notify(
    db: Session,
    user_pubkey: str,
    notification_type: NotificationType,
    title: str,
    message: str,
    related_entity_id: UUID | str | None = None,
) -> Notification:
    """Queue a notification row in the current transaction."""
    notification = Notification(
        user_pubkey=user_pubkey,
        type=notification_type.value,
        title=title,
        message=message,
        related_entity_id=str(related_entity_id) if related_entity_id else None,
    )
    db.add(notification)
    db.flush()
    return notification


def list_notifications(
    db: Session,
    user_pubkey: str,
    pagination: PaginationParams,
    unread_only: bool = False,
    notification_type: NotificationType | None = None,
) -> tuple[list[Notification], int]:
    stmt = select(Notification).where(Notification.user_pubkey == user_pubkey)
    if unread_only:
        stmt = stmt.where(Notification.read.is_(False))
    if notification_type is not None:
        stmt = stmt.where(Notification.type == notification_type.value)
    stmt = stmt.order_by(Notification.created_at.desc(), Notification.id)
    return paginate_query(db, stmt, pagination)


def mark_all_read(db: Session, user_pubkey: str) -> int:
    """Mark every unread notification of the user as read; returns the count."""
    result = db.execute(
        update(Notification)
        .where(Notification.user_pubkey == user_pubkey, Notification.read.is_(False))
        .values(read=True)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount or 0


def _get_owned(db: Session, user_pubkey: str, notification_id: UUID, verb: str) -> Notification:
    notification = db.get(Notification, notification_id)
    if not notification:
        raise NotFoundError("Notification not found")
    if notification.user_pubkey != user_pubkey:
        raise ForbiddenError(f"You can only {verb} your own notifications")
    return notification


def mark_read(db: Session, user_pubkey: str, notification_id: UUID) -> Notification:
    notification = _get_owned(db, user_pubkey, notification_id, "mark")
    notification.read = True
    db.flush()
    return notification


def delete_notification(db: Session, user_pubkey: str, notification_id: UUID) -> None:
    notification = _get_owned(db, user_pubkey, notification_id, "delete")
    db.delete(notification)
    db.flush()
