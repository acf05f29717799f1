"""Workspace, membership and workspace activity schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from app.db.enums import DEFAULT_MEMBER_ROLE, WorkspaceActivityAction, WorkspaceRole
from app.schemas.common import CamelModel, Pubkey
from app.schemas.user import UserSummary


class WorkspaceCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: str | None = Field(None, max_length=120)
    mission: str | None = Field(None, max_length=1000)
    avatar_url: str | None = Field(None, max_length=500)
    website_url: str | None = Field(None, max_length=500)
    github_url: str | None = Field(None, max_length=500)


class WorkspaceUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=50)
    description: str | None = Field(None, max_length=120)
    mission: str | None = Field(None, max_length=1000)
    avatar_url: str | None = Field(None, max_length=500)
    website_url: str | None = Field(None, max_length=500)
    github_url: str | None = Field(None, max_length=500)


class WorkspaceRead(CamelModel):
    id: UUID
    name: str
    owner_pubkey: str
    description: str | None = None
    mission: str | None = None
    avatar_url: str | None = None
    website_url: str | None = None
    github_url: str | None = None
    created_at: datetime
    updated_at: datetime


class WorkspaceListItem(WorkspaceRead):
    """Workspace as seen by one of its members."""

    role: WorkspaceRole
    member_count: int = 0


class MemberAdd(CamelModel):
    user_pubkey: Pubkey
    role: WorkspaceRole = DEFAULT_MEMBER_ROLE


class MemberRoleUpdate(CamelModel):
    role: WorkspaceRole


class MemberRead(CamelModel):
    id: UUID
    workspace_id: UUID
    user_pubkey: str
    role: WorkspaceRole
    joined_at: datetime
    user: UserSummary | None = None


class WorkspaceActivityRead(CamelModel):
    id: UUID
    workspace_id: UUID
    user_pubkey: str
    action: WorkspaceActivityAction
    details: dict | None = None
    timestamp: datetime
