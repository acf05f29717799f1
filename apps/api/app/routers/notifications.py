"""
Notifications Router - /api/notifications endpoints.

The caller's in-app notifications: listing, read status, deletion.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_caller, get_db
from app.core.responses import Envelope, api_paginated, api_success
from app.db.enums import NotificationType
from app.schemas.auth import CallerSession
from app.schemas.notification import NotificationRead
from app.services import notification_service
from app.utils.pagination import PaginationParams, get_pagination

router = APIRouter()


@router.get("", response_model=Envelope[list[NotificationRead]])
def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    type: NotificationType | None = Query(None),
    pagination: PaginationParams = Depends(get_pagination),
    caller: CallerSession = Depends(get_caller),
    db: Session = Depends(get_db),
):
    """Get the caller's notifications, newest first."""
    items, total = notification_service.list_notifications(
        db, caller.pubkey, pagination, unread_only=unread_only, notification_type=type
    )
    return api_paginated([NotificationRead.model_validate(n) for n in items], total, pagination)


@router.patch("", response_model=Envelope[dict])
def mark_all_read(
    caller: CallerSession = Depends(get_caller),
    db: Session = Depends(get_db),
):
    """Mark all notifications as read."""
    count = notification_service.mark_all_read(db, caller.pubkey)
    db.commit()
    return api_success({"markedRead": count})


@router.patch("/{notification_id}", response_model=Envelope[NotificationRead])
def mark_read(
    notification_id: UUID,
    caller: CallerSession = Depends(get_caller),
    db: Session = Depends(get_db),
):
    notification = notification_service.mark_read(db, caller.pubkey, notification_id)
    db.commit()
    db.refresh(notification)
    return api_success(NotificationRead.model_validate(notification))


@router.delete("/{notification_id}", response_model=Envelope[dict])
def delete_notification(
    notification_id: UUID,
    caller: CallerSession = Depends(get_caller),
    db: Session = Depends(get_db),
):
    notification_service.delete_notification(db, caller.pubkey, notification_id)
    db.commit()
    return api_success({"id": notification_id, "deleted": True})
