"""
Users Router - /api/users endpoints.

Profiles, stats and per-user bounty listings. Profile mutations are
self-only.
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_caller, get_db, get_optional_caller
from app.core.responses import Envelope, api_paginated, api_success
from app.schemas.auth import CallerSession
from app.schemas.bounty import BountyRead
from app.schemas.user import (
    UserProfile,
    UserRead,
    UserStats,
    UsernameAvailability,
    UserUpdate,
)
from app.services import user_service
from app.utils.pagination import PaginationParams, get_pagination

router = APIRouter()


def _profile(db: Session, user) -> UserProfile:
    counts = user_service.get_profile_counts(db, user.pubkey)
    return UserProfile.model_validate({**UserRead.model_validate(user).model_dump(), **counts})


@router.get("", response_model=Envelope[list[UserRead]])
def list_users(
    search: str | None = Query(None, max_length=100),
    sort_by: Literal["createdAt", "username", "lastLogin"] = Query("createdAt", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    pagination: PaginationParams = Depends(get_pagination),
    db: Session = Depends(get_db),
):
    items, total = user_service.list_users(db, pagination, search, sort_by, sort_order)
    return api_paginated([UserRead.model_validate(u) for u in items], total, pagination)


@router.get("/me", response_model=Envelope[UserProfile])
def get_me(
    caller: CallerSession = Depends(get_caller),
    db: Session = Depends(get_db),
):
    user = user_service.require_user(db, caller.pubkey)
    return api_success(_profile(db, user))


@router.get("/username/available", response_model=Envelope[UsernameAvailability])
def check_username(
    username: str = Query(..., min_length=3, max_length=20, pattern=r"^[a-zA-Z0-9_]+$"),
    caller: CallerSession | None = Depends(get_optional_caller),
    db: Session = Depends(get_db),
):
    """Case-insensitive; the caller's own username counts as available."""
    available = user_service.is_username_available(
        db, username, exclude_pubkey=caller.pubkey if caller else None
    )
    return api_success(UsernameAvailability(username=username, available=available))


@router.get("/{pubkey}", response_model=Envelope[UserProfile])
def get_user(pubkey: str, db: Session = Depends(get_db)):
    user = user_service.require_user(db, pubkey)
    return api_success(_profile(db, user))


@router.patch("/{pubkey}", response_model=Envelope[UserProfile])
def update_user(
    pubkey: str,
    data: UserUpdate,
    caller: CallerSession = Depends(get_caller),
    db: Session = Depends(get_db),
):
    user = user_service.update_profile(db, caller.pubkey, pubkey, data)
    db.commit()
    db.refresh(user)
    return api_success(_profile(db, user))


@router.delete("/{pubkey}", response_model=Envelope[dict])
def delete_user(
    pubkey: str,
    caller: CallerSession = Depends(get_caller),
    db: Session = Depends(get_db),
):
    user_service.delete_account(db, caller.pubkey, pubkey)
    db.commit()
    return api_success({"pubkey": pubkey, "deleted": True})


@router.get("/{pubkey}/stats", response_model=Envelope[UserStats])
def get_user_stats(pubkey: str, db: Session = Depends(get_db)):
    return api_success(UserStats.model_validate(user_service.get_stats(db, pubkey)))


@router.get("/{pubkey}/bounties/{relation}", response_model=Envelope[list[BountyRead]])
def list_user_bounties(
    pubkey: str,
    relation: Literal["created", "assigned"],
    pagination: PaginationParams = Depends(get_pagination),
    caller: CallerSession | None = Depends(get_optional_caller),
    db: Session = Depends(get_db),
):
    items, total = user_service.list_user_bounties(
        db, pubkey, pagination, relation, viewer_pubkey=caller.pubkey if caller else None
    )
    return api_paginated([BountyRead.model_validate(b) for b in items], total, pagination)
