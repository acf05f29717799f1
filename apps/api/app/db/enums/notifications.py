"""Notification enums."""

from enum import Enum


class NotificationType(str, Enum):
    """In-app notification types."""

    BOUNTY_ASSIGNED = "BOUNTY_ASSIGNED"
    BOUNTY_COMPLETED = "BOUNTY_COMPLETED"
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    PROOF_REVIEWED = "PROOF_REVIEWED"
    WORKSPACE_INVITE = "WORKSPACE_INVITE"
    MEMBER_ADDED = "MEMBER_ADDED"
    MEMBER_REMOVED = "MEMBER_REMOVED"
