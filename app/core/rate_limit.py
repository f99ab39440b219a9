from __future__ import annotations

from slowapi import Limiter
from starlette.requests import Request

from app.core.config import settings


def client_key(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for", "").strip()
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


limiter = Limiter(key_func=client_key)


def rate_limit(limit: str | None = None):
    """Per-client slowapi limit; `limit` overrides RATE_LIMIT for one route."""
    if settings.rate_limit_enabled:
        return limiter.limit(limit or settings.rate_limit)

    def decorator(func):
        return func

    return decorator
