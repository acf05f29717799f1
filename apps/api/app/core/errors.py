"""Application error taxonomy, ORM error mapping and FastAPI exception handlers.

Every error that reaches a client is rendered through the same envelope
(see app.core.responses). Storage-layer exceptions are translated into the
taxonomy so callers never see SQLAlchemy types.
"""

import logging
from enum import Enum
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError

from app.core.responses import api_error
from app.core.structured_logging import build_log_context

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Flat error taxonomy; each code has a fixed HTTP status and default message."""

    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    RATE_LIMIT = "RATE_LIMIT"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    # Auth-specific
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

    @property
    def status_code(self) -> int:
        return ERROR_STATUS[self]

    @property
    def default_message(self) -> str:
        return ERROR_MESSAGES[self]


ERROR_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INTERNAL_SERVER_ERROR: 500,
    ErrorCode.BAD_REQUEST: 400,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.CONFLICT: 409,
    ErrorCode.VALIDATION_ERROR: 422,
    ErrorCode.RATE_LIMIT: 429,
    ErrorCode.SERVICE_UNAVAILABLE: 503,
    ErrorCode.INVALID_CREDENTIALS: 401,
    ErrorCode.SESSION_EXPIRED: 401,
    ErrorCode.PERMISSION_DENIED: 403,
    ErrorCode.RESOURCE_NOT_FOUND: 404,
}

ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INTERNAL_SERVER_ERROR: "An unexpected error occurred",
    ErrorCode.BAD_REQUEST: "Bad request",
    ErrorCode.UNAUTHORIZED: "Authentication required",
    ErrorCode.FORBIDDEN: "You do not have permission to perform this action",
    ErrorCode.NOT_FOUND: "Resource not found",
    ErrorCode.CONFLICT: "Resource already exists",
    ErrorCode.VALIDATION_ERROR: "Invalid request data",
    ErrorCode.RATE_LIMIT: "Too many requests, please try again later",
    ErrorCode.SERVICE_UNAVAILABLE: "Service temporarily unavailable",
    ErrorCode.INVALID_CREDENTIALS: "Invalid credentials",
    ErrorCode.SESSION_EXPIRED: "Session has expired",
    ErrorCode.PERMISSION_DENIED: "Permission denied",
    ErrorCode.RESOURCE_NOT_FOUND: "The requested resource was not found",
}

_STATUS_TO_CODE: dict[int, ErrorCode] = {
    400: ErrorCode.BAD_REQUEST,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.BAD_REQUEST,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
    429: ErrorCode.RATE_LIMIT,
    503: ErrorCode.SERVICE_UNAVAILABLE,
}


def code_for_status(status_code: int) -> ErrorCode:
    """Best-fit error code for a bare HTTP status."""
    if status_code in _STATUS_TO_CODE:
        return _STATUS_TO_CODE[status_code]
    if status_code >= 500:
        return ErrorCode.INTERNAL_SERVER_ERROR
    return ErrorCode.BAD_REQUEST


# =============================================================================
# Exceptions
# =============================================================================


class AppError(Exception):
    """
    Base exception carrying an error code, message and optional details.

    Operational errors (4xx) are expected outcomes of a request;
    anything else is a bug and gets logged with a stack trace.
    """

    code: ErrorCode = ErrorCode.INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str | None = None,
        *,
        code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
    ):
        if code is not None:
            self.code = code
        self.message = message or self.code.default_message
        self.details = details
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.code.status_code

    @property
    def is_operational(self) -> bool:
        return self.status_code < 500

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class BadRequestError(AppError):
    code = ErrorCode.BAD_REQUEST


class UnauthorizedError(AppError):
    code = ErrorCode.UNAUTHORIZED


class ForbiddenError(AppError):
    code = ErrorCode.FORBIDDEN


class NotFoundError(AppError):
    code = ErrorCode.NOT_FOUND


class ConflictError(AppError):
    code = ErrorCode.CONFLICT


class ValidationError(AppError):
    code = ErrorCode.VALIDATION_ERROR


class InvalidTransitionError(BadRequestError):
    """Requested bounty status change is not in the transition table."""

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Cannot transition from {current} to {target}",
            details={"from": current, "to": target},
        )


# =============================================================================
# ORM error mapping
# =============================================================================


def map_db_error(exc: Exception) -> AppError:
    """Translate a storage-layer exception into the error taxonomy."""
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, NoResultFound):
        return NotFoundError()
    if isinstance(exc, IntegrityError):
        raw = str(exc.orig).lower() if exc.orig is not None else str(exc).lower()
        if "unique" in raw or "duplicate" in raw:
            return ConflictError("A record with this value already exists")
        if "foreign key" in raw:
            return ValidationError("Referenced record does not exist")
        return ValidationError("Database constraint violated")
    return AppError()


# =============================================================================
# Exception handlers
# =============================================================================


def _log_context(request: Request) -> dict[str, Any]:
    return build_log_context(
        pubkey=request.headers.get("x-user-pubkey"),
        route=request.url.path,
        method=request.method,
    )


async def app_error_handler(request: Request, exc: AppError):
    if not exc.is_operational:
        logger.error("Application error: %s", exc.message, extra=_log_context(request))
    return api_error(exc.code.value, exc.message, exc.details, exc.status_code)


async def http_exception_handler(request: Request, exc: HTTPException):
    code = code_for_status(exc.status_code)
    message = exc.detail if isinstance(exc.detail, str) else code.default_message
    return api_error(code.value, message, None, exc.status_code, headers=exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    fields = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    code = ErrorCode.VALIDATION_ERROR
    return api_error(code.value, code.default_message, {"fields": fields}, code.status_code)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    code = ErrorCode.RATE_LIMIT
    logger.warning("Rate limit exceeded: %s", exc.detail, extra=_log_context(request))
    return api_error(code.value, code.default_message, None, code.status_code)


async def database_error_handler(request: Request, exc: SQLAlchemyError):
    mapped = map_db_error(exc)
    if not mapped.is_operational:
        logger.exception("Database error", extra=_log_context(request))
    return api_error(mapped.code.value, mapped.message, mapped.details, mapped.status_code)


async def unhandled_exception_handler(request: Request, exc: Exception):
    # Never leak internals to the client
    logger.exception("Unhandled error", extra=_log_context(request))
    code = ErrorCode.INTERNAL_SERVER_ERROR
    return api_error(code.value, code.default_message, None, code.status_code)


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
