"""Structured logging helpers."""

import logging
from typing import Any

from app.core.request_context import get_request_id


def build_log_context(
    *,
    pubkey: str | None = None,
    workspace_id: str | None = None,
    bounty_id: str | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
) -> dict[str, Any]:
    """Return a log context dict for logger `extra=`; pubkeys are truncated."""
    context: dict[str, Any] = {}
    if pubkey:
        context["pubkey"] = f"{pubkey[:12]}…" if len(pubkey) > 12 else pubkey
    if workspace_id:
        context["workspace_id"] = str(workspace_id)
    if bounty_id:
        context["bounty_id"] = str(bounty_id)
    request_id = request_id or get_request_id()
    if request_id:
        context["request_id"] = request_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    return context


def configure_logging(level: str = "INFO") -> None:
    """Root logging setup for the API process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s",
    )
    for handler in logging.getLogger().handlers:
        handler.addFilter(RequestIdFilter())


class RequestIdFilter(logging.Filter):
    """Stamp every record with the current request id (or '-')."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = get_request_id() or "-"
        return True
