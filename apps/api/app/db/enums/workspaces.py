"""Workspace-related enums."""

from enum import Enum


class WorkspaceRole(str, Enum):
    """
    Workspace-scoped roles with increasing privilege levels.

    - VIEWER: Read-only access to workspace data
    - CONTRIBUTOR: Can create, claim and work on bounties
    - ADMIN: Manages members, budget and bounty reviews
    - OWNER: Full control, including workspace deletion
    """

    VIEWER = "VIEWER"
    CONTRIBUTOR = "CONTRIBUTOR"
    ADMIN = "ADMIN"
    OWNER = "OWNER"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_


class WorkspaceActivityAction(str, Enum):
    MEMBER_ADDED = "MEMBER_ADDED"
    MEMBER_REMOVED = "MEMBER_REMOVED"
    ROLE_CHANGED = "ROLE_CHANGED"
    BUDGET_DEPOSITED = "BUDGET_DEPOSITED"
    BUDGET_WITHDRAWN = "BUDGET_WITHDRAWN"
    SETTINGS_UPDATED = "SETTINGS_UPDATED"
