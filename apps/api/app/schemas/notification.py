"""Notification schemas."""

from datetime import datetime
from uuid import UUID

from app.db.enums import NotificationType
from app.schemas.common import CamelModel


class NotificationRead(CamelModel):
    id: UUID
    type: NotificationType
    title: str
    message: str
    related_entity_id: str | None = None
    read: bool
    created_at: datetime
