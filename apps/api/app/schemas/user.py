"""User-related Pydantic schemas."""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import Field, StringConstraints

from app.schemas.common import CamelModel


Username = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=3, max_length=20, pattern=r"^[a-zA-Z0-9_]+$"),
]


class UserSummary(CamelModel):
    """Compact user reference embedded in other resources."""

    pubkey: str
    username: str
    alias: str | None = None
    avatar_url: str | None = None


class UserRead(UserSummary):
    id: UUID
    description: str | None = None
    contact_key: str | None = None
    route_hint: str | None = None
    github_username: str | None = None
    github_verified: bool = False
    twitter_username: str | None = None
    twitter_verified: bool = False
    created_at: datetime
    last_login: datetime | None = None


class UserProfile(UserRead):
    """Public profile with activity counts."""

    bounties_created: int = 0
    bounties_assigned: int = 0
    bounties_completed: int = 0
    total_earned: int = 0
    workspace_count: int = 0


class UserUpdate(CamelModel):
    """Request schema for updating the caller's own profile."""

    username: Username | None = None
    alias: str | None = Field(None, max_length=100)
    description: str | None = Field(None, max_length=500)
    avatar_url: str | None = Field(None, max_length=500)
    contact_key: str | None = Field(None, max_length=255)
    route_hint: str | None = Field(None, max_length=255)
    github_username: str | None = Field(None, max_length=100)
    twitter_username: str | None = Field(None, max_length=100)


class UsernameAvailability(CamelModel):
    username: str
    available: bool


class LanguageCount(CamelModel):
    language: str
    count: int


class UserStats(CamelModel):
    pubkey: str
    total_earned: int
    bounties_completed: int
    bounties_created: int
    bounties_assigned: int
    active_bounties: int
    workspace_count: int
    average_completion_hours: float | None
    top_languages: list[LanguageCount]


class LeaderboardEntry(CamelModel):
    rank: int
    pubkey: str
    username: str
    alias: str | None = None
    avatar_url: str | None = None
    total_earned: int
    bounties_completed: int
    last_completed_at: datetime | None = None
