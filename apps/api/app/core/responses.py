"""Uniform JSON response envelope.

    { "success": bool, "data"?: T, "error"?: {code, message, details?},
      "meta": {"timestamp": ISO-8601, "pagination"?: {...}} }
"""

from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.utils.pagination import PaginationParams, pagination_meta

T = TypeVar("T")


# =============================================================================
# Envelope schemas (OpenAPI documentation only)
# =============================================================================


class ErrorBody(BaseModel):
    code: str
    message: str
    details: dict[str, Any] | None = None


class PaginationMeta(BaseModel):
    page: int
    pageSize: int
    totalCount: int
    totalPages: int
    hasMore: bool


class ResponseMeta(BaseModel):
    timestamp: datetime
    pagination: PaginationMeta | None = None


class Envelope(BaseModel, Generic[T]):
    success: bool
    data: T | None = None
    error: ErrorBody | None = None
    meta: ResponseMeta


# =============================================================================
# Helpers
# =============================================================================


def _meta(pagination: dict[str, Any] | None = None) -> dict[str, Any]:
    meta: dict[str, Any] = {"timestamp": datetime.now(timezone.utc).isoformat()}
    if pagination is not None:
        meta["pagination"] = pagination
    return meta


def _encode(data: Any) -> Any:
    return jsonable_encoder(data, by_alias=True)


def api_success(data: Any = None, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": True, "data": _encode(data), "meta": _meta()},
    )


def api_created(data: Any) -> JSONResponse:
    return api_success(data, status_code=201)


def api_paginated(items: list, total: int, pagination: PaginationParams) -> JSONResponse:
    return JSONResponse(
        status_code=200,
        content={
            "success": True,
            "data": _encode(items),
            "meta": _meta(pagination_meta(total, pagination)),
        },
    )


def api_error(
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    status_code: int = 500,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    error: dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = _encode(details)
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "meta": _meta()},
        headers=headers,
    )
