"""slowapi limiter shared by the app and the write routes.

Counters live in Redis when REDIS_URL answers a ping so every worker
sees the same window; otherwise each process counts in memory.
"""

import logging

import redis
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

logger = logging.getLogger(__name__)

MEMORY_STORAGE = "memory://"


def write_limit() -> str:
    """Per-client budget for create endpoints, read on every request."""
    return f"{max(settings.RATE_LIMIT_WRITE, 1)}/minute"


def _default_limits() -> list[str]:
    if settings.RATE_LIMIT_API <= 0:
        return []
    return [f"{settings.RATE_LIMIT_API}/minute"]


def _storage_uri() -> str:
    if settings.TESTING or not settings.REDIS_URL:
        return MEMORY_STORAGE
    try:
        redis.from_url(settings.REDIS_URL, socket_connect_timeout=1).ping()
    except redis.RedisError as exc:
        logger.warning("Redis unavailable for rate limiting, counting in memory: %s", exc)
        return MEMORY_STORAGE
    return settings.REDIS_URL


limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=_storage_uri(),
    default_limits=_default_limits(),
    enabled=not settings.TESTING,
)
