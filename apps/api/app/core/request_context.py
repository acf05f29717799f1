"""Per-request context (request id) for log correlation."""

import uuid
from contextvars import ContextVar, Token


REQUEST_ID_HEADER = "X-Request-ID"

_REQUEST_ID: ContextVar[str | None] = ContextVar("request_id", default=None)


def start_request_context(request_id: str | None = None) -> tuple[str, Token]:
    """Bind a request id (incoming or generated) and return it with the reset token."""
    value = request_id or uuid.uuid4().hex
    return value, _REQUEST_ID.set(value)


def reset_request_context(token: Token) -> None:
    """Restore the previous request-local state."""
    _REQUEST_ID.reset(token)


def get_request_id() -> str | None:
    return _REQUEST_ID.get()
