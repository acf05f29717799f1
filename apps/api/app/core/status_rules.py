"""Bounty status transition table.

Every status-changing write consults this table, including the
proof-submission edge ASSIGNED -> IN_REVIEW.
"""

from app.core.errors import InvalidTransitionError
from app.db.enums import BountyStatus


ALLOWED_TRANSITIONS: dict[BountyStatus, frozenset[BountyStatus]] = {
    BountyStatus.DRAFT: frozenset({BountyStatus.OPEN, BountyStatus.CANCELLED}),
    BountyStatus.OPEN: frozenset({BountyStatus.ASSIGNED, BountyStatus.CANCELLED}),
    BountyStatus.ASSIGNED: frozenset(
        {BountyStatus.OPEN, BountyStatus.IN_REVIEW, BountyStatus.CANCELLED}
    ),
    BountyStatus.IN_REVIEW: frozenset(
        {BountyStatus.ASSIGNED, BountyStatus.PAID, BountyStatus.CANCELLED}
    ),
    BountyStatus.PAID: frozenset({BountyStatus.COMPLETED}),
    BountyStatus.COMPLETED: frozenset(),
    BountyStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)

# Statuses holding a budget reservation (amount sits in reserved_budget)
RESERVED_STATUSES = frozenset(
    {BountyStatus.OPEN, BountyStatus.ASSIGNED, BountyStatus.IN_REVIEW}
)

# Work in flight; blocks workspace and account deletion
ACTIVE_STATUSES = frozenset(
    {BountyStatus.OPEN, BountyStatus.ASSIGNED, BountyStatus.IN_REVIEW}
)


def can_transition(current: BountyStatus | str, target: BountyStatus | str) -> bool:
    if not BountyStatus.has_value(current) or not BountyStatus.has_value(target):
        return False
    return BountyStatus(target) in ALLOWED_TRANSITIONS[BountyStatus(current)]


def ensure_transition(current: BountyStatus | str, target: BountyStatus | str) -> None:
    """
    Raise InvalidTransitionError unless target is a legal successor of current.

    Raises:
        InvalidTransitionError (400): "Cannot transition from X to Y"
    """
    if not can_transition(current, target):
        raise InvalidTransitionError(_name(current), _name(target))


def _name(status: BountyStatus | str) -> str:
    return status.value if isinstance(status, BountyStatus) else str(status)
