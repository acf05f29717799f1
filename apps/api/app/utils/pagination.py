"""Pagination utilities for list endpoints."""

from dataclasses import dataclass

from fastapi import Query
from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from app.core.config import settings


# Pagination limits
DEFAULT_PAGE = 1
MAX_PAGE_SIZE = 100


@dataclass
class PaginationParams:
    """Pagination parameters from query string."""
    page: int
    page_size: int
    
    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def get_pagination(
    page: int = Query(DEFAULT_PAGE, ge=1, description="Page number (1-indexed)"),
    page_size: int | None = Query(
        None, alias="pageSize", ge=1, le=MAX_PAGE_SIZE,
        description=f"Items per page (max {MAX_PAGE_SIZE})",
    ),
    per_page: int | None = Query(
        None, alias="perPage", ge=1, le=MAX_PAGE_SIZE, description="Alias of pageSize"
    ),
    limit: int | None = Query(
        None, ge=1, le=MAX_PAGE_SIZE, description="Alias of pageSize"
    ),
) -> PaginationParams:
    """
    Pagination dependency.
    
    Usage:
        @router.get("/items")
        def list_items(pagination: PaginationParams = Depends(get_pagination)):
            ...
    """
    size = next(
        (value for value in (page_size, per_page, limit) if value is not None),
        min(settings.DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE),
    )
    return PaginationParams(page=page, page_size=size)


def total_pages(total: int, page_size: int) -> int:
    return (total + page_size - 1) // page_size if page_size > 0 else 0


def pagination_meta(total: int, pagination: PaginationParams) -> dict:
    """Envelope meta.pagination block."""
    pages = total_pages(total, pagination.page_size)
    return {
        "page": pagination.page,
        "pageSize": pagination.page_size,
        "totalCount": total,
        "totalPages": pages,
        "hasMore": pagination.page < pages,
    }


def paginate_query(db: Session, stmt: Select, pagination: PaginationParams) -> tuple[list, int]:
    """
    Apply pagination to a SELECT statement.
    
    Returns:
        (items, total_count)
    """
    total = db.execute(
        select(func.count()).select_from(stmt.order_by(None).subquery())
    ).scalar_one()
    items = db.execute(
        stmt.offset(pagination.offset).limit(pagination.page_size)
    ).scalars().all()
    return list(items), total
