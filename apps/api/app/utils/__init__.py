"""Utility modules."""

from app.utils.datetimes import ensure_utc, seconds_between
from app.utils.pagination import (
    PaginationParams,
    get_pagination,
    paginate_query,
    pagination_meta,
)

__all__ = [
    # Datetimes
    "ensure_utc",
    "seconds_between",
    # Pagination
    "PaginationParams",
    "get_pagination",
    "paginate_query",
    "pagination_meta",
]
