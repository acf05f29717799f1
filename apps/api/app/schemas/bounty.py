"""Bounty, proof, request and comment schemas."""

from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID

from pydantic import Field, HttpUrl, StringConstraints, field_validator

from app.core.config import settings
from app.db.enums import (
    BountyActivityAction,
    BountyRequestStatus,
    BountyStatus,
    ProofStatus,
)
from app.schemas.common import CamelModel, Pubkey
from app.schemas.user import UserSummary


Tag = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=30)]
Language = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=30)]

CREATABLE_STATUSES = (BountyStatus.DRAFT, BountyStatus.OPEN)


# =============================================================================
# Bounties
# =============================================================================


class BountyCreate(CamelModel):
    title: str = Field(..., min_length=5, max_length=200)
    description: str = Field(..., min_length=20, max_length=10000)
    deliverables: str = Field(..., min_length=10, max_length=5000)
    amount: int = Field(..., ge=settings.MIN_BOUNTY_AMOUNT, le=settings.MAX_BOUNTY_AMOUNT)
    tags: list[Tag] = Field(default_factory=list, max_length=10)
    coding_languages: list[Language] = Field(default_factory=list, max_length=10)
    estimated_hours: int | None = Field(None, ge=1, le=10000)
    estimated_completion_date: datetime | None = None
    github_issue_url: HttpUrl | None = None
    loom_video_url: HttpUrl | None = None
    status: BountyStatus = BountyStatus.DRAFT

    @field_validator("status")
    @classmethod
    def status_must_be_creatable(cls, value: BountyStatus) -> BountyStatus:
        if value not in CREATABLE_STATUSES:
            raise ValueError("Bounties can only be created as DRAFT or OPEN")
        return value


class BountyUpdate(CamelModel):
    """Partial update; only fields present in the body are applied."""

    title: str | None = Field(None, min_length=5, max_length=200)
    description: str | None = Field(None, min_length=20, max_length=10000)
    deliverables: str | None = Field(None, min_length=10, max_length=5000)
    amount: int | None = Field(
        None, ge=settings.MIN_BOUNTY_AMOUNT, le=settings.MAX_BOUNTY_AMOUNT
    )
    tags: list[Tag] | None = Field(None, max_length=10)
    coding_languages: list[Language] | None = Field(None, max_length=10)
    estimated_hours: int | None = Field(None, ge=1, le=10000)
    estimated_completion_date: datetime | None = None
    github_issue_url: HttpUrl | None = None
    loom_video_url: HttpUrl | None = None
    status: BountyStatus | None = None
    assignee_pubkey: Pubkey | None = None


class BountyRead(CamelModel):
    id: UUID
    workspace_id: UUID
    creator_pubkey: str
    assignee_pubkey: str | None = None
    title: str
    description: str
    deliverables: str
    amount: int
    status: BountyStatus
    tags: list[str] = []
    coding_languages: list[str] = []
    estimated_hours: int | None = None
    estimated_completion_date: datetime | None = None
    github_issue_url: str | None = None
    loom_video_url: str | None = None
    assigned_at: datetime | None = None
    completed_at: datetime | None = None
    paid_at: datetime | None = None
    work_started_at: datetime | None = None
    work_closed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    creator: UserSummary | None = None
    assignee: UserSummary | None = None


class BountyActivityRead(CamelModel):
    id: UUID
    bounty_id: UUID
    user_pubkey: str
    action: BountyActivityAction
    details: dict | None = None
    timestamp: datetime


class AssignRequest(CamelModel):
    assignee_pubkey: Pubkey


class CancelRequest(CamelModel):
    reason: str | None = Field(None, max_length=500)


class TimingRead(CamelModel):
    bounty_id: UUID
    work_started_at: datetime | None = None
    work_closed_at: datetime | None = None
    is_active: bool = False
    duration_seconds: int | None = None


# =============================================================================
# Proofs
# =============================================================================


class ProofCreate(CamelModel):
    proof_url: HttpUrl
    description: str = Field(..., min_length=20, max_length=2000)


class ProofReview(CamelModel):
    approved: bool
    feedback: str | None = Field(None, min_length=10, max_length=1000)
    request_changes: bool = False


class ProofRead(CamelModel):
    id: UUID
    bounty_id: UUID
    submitted_by_pubkey: str
    description: str
    proof_url: str
    status: ProofStatus
    review_notes: str | None = None
    reviewed_by_pubkey: str | None = None
    reviewed_at: datetime | None = None
    created_at: datetime


# =============================================================================
# Work requests
# =============================================================================


class BountyRequestCreate(CamelModel):
    message: str | None = Field(None, max_length=1000)


class BountyRequestReview(CamelModel):
    action: Literal["approve", "reject"]
    review_note: str | None = Field(None, max_length=1000)


class BountyRequestRead(CamelModel):
    id: UUID
    bounty_id: UUID
    requester_pubkey: str
    message: str | None = None
    status: BountyRequestStatus
    review_note: str | None = None
    reviewed_by_pubkey: str | None = None
    reviewed_at: datetime | None = None
    created_at: datetime
    requester: UserSummary | None = None


# =============================================================================
# Comments
# =============================================================================


class CommentCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=5000)


class CommentUpdate(CamelModel):
    content: str = Field(..., min_length=1, max_length=5000)


class CommentRead(CamelModel):
    id: UUID
    bounty_id: UUID
    author_pubkey: str
    content: str
    created_at: datetime
    updated_at: datetime
    author: UserSummary | None = None
