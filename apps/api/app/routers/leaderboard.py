"""
Leaderboard Router - /api/leaderboard.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_db
from app.core.responses import Envelope, api_paginated
from app.schemas.user import LeaderboardEntry
from app.services import leaderboard_service
from app.utils.pagination import PaginationParams, get_pagination

router = APIRouter()


@router.get("", response_model=Envelope[list[LeaderboardEntry]])
def get_leaderboard(
    pagination: PaginationParams = Depends(get_pagination),
    db: Session = Depends(get_db),
):
    """Users ranked by total sats earned."""
    entries, total = leaderboard_service.get_leaderboard(db, pagination)
    return api_paginated([LeaderboardEntry(**e) for e in entries], total, pagination)
