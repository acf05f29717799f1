"""Bounty lifecycle enums."""

from enum import Enum


class BountyStatus(str, Enum):
    """Bounty lifecycle status. Legal moves live in app.core.status_rules."""

    DRAFT = "DRAFT"
    OPEN = "OPEN"
    ASSIGNED = "ASSIGNED"
    IN_REVIEW = "IN_REVIEW"
    COMPLETED = "COMPLETED"
    PAID = "PAID"
    CANCELLED = "CANCELLED"

    @classmethod
    def has_value(cls, value: str) -> bool:
        return value in cls._value2member_map_


class ProofStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"


class BountyRequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class BountyActivityAction(str, Enum):
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    ASSIGNED = "ASSIGNED"
    UNASSIGNED = "UNASSIGNED"
    PROOF_SUBMITTED = "PROOF_SUBMITTED"
    PROOF_REVIEWED = "PROOF_REVIEWED"
    COMPLETED = "COMPLETED"
    PAID = "PAID"
    CANCELLED = "CANCELLED"
    REQUESTED = "REQUESTED"
    REQUEST_APPROVED = "REQUEST_APPROVED"
    REQUEST_REJECTED = "REQUEST_REJECTED"


class BountySortField(str, Enum):
    """Sortable columns for bounty listings (API name -> column)."""

    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    AMOUNT = "amount"
    ESTIMATED_COMPLETION_DATE = "estimatedCompletionDate"
