"""
Rate Limiting

Per-client rate limiting with Redis backend, proper headers, and logging.
Clients are identified by a hash of their API token, falling back to IP.
"""

import logging

from fastapi import HTTPException, Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from therapist_checkin.api.dependencies import Resources, get_resources
from therapist_checkin.api.middleware.auth import hash_api_token
from therapist_checkin.infra.redis import RateLimiterStore

logger = logging.getLogger(__name__)

# Header names
HEADER_LIMIT = "X-RateLimit-Limit"
HEADER_REMAINING = "X-RateLimit-Remaining"
HEADER_USED = "X-RateLimit-Used"
HEADER_RESET = "X-RateLimit-Reset"
HEADER_RETRY_AFTER = "Retry-After"


def client_identifier(request: Request) -> str:
    """Rate limit bucket for a request."""
    token = request.headers.get("x-api-key")
    client_ip = request.client.host if request.client else "unknown"
    if token:
        # Kiosks share one token, so keep them apart by IP as well
        return f"token:{hash_api_token(token)[:16]}:ip:{client_ip}"
    return f"ip:{client_ip}"


async def get_rate_limiter_store(resources: Resources) -> RateLimiterStore:
    """Counter for the configured limits. Works without Redis (fails open)."""
    client = await resources.redis.get_client() if resources.redis else None
    return RateLimiterStore(
        client,
        max_requests=resources.settings.rate_limit_requests,
        window_seconds=resources.settings.rate_limit_window,
    )


def rate_limit_headers(limit: int, remaining: int, used: int, reset_seconds: int) -> dict[str, str]:
    return {
        HEADER_LIMIT: str(limit),
        HEADER_REMAINING: str(remaining),
        HEADER_USED: str(used),
        HEADER_RESET: str(reset_seconds),
    }


async def require_rate_limit(request: Request) -> None:
    """
    Count the request against its client's window; 429 once it is spent.

    The counts are left on request.state for RateLimitMiddleware.

    Usage:
        router = APIRouter(dependencies=[Depends(require_rate_limit)])
    """
    if request.method == "OPTIONS":
        return

    resources = get_resources(request)
    if not resources.settings.rate_limit_enabled:
        return

    store = await get_rate_limiter_store(resources)
    identifier = client_identifier(request)
    allowed, remaining, used, reset_seconds = await store.hit(identifier)
    request.state.rate_limit = (store.max_requests, remaining, used, reset_seconds)

    if allowed:
        return

    logger.warning(
        f"Rate limit exceeded | Client: {identifier} | "
        f"Limit: {store.max_requests} | Used: {used} | Path: {request.url.path}"
    )
    headers = rate_limit_headers(store.max_requests, 0, used, reset_seconds)
    headers[HEADER_RETRY_AFTER] = str(reset_seconds)
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail={
            "error": "Rate limit exceeded",
            "limit": store.max_requests,
            "used": used,
            "retry_after": reset_seconds,
        },
        headers=headers,
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Copies the counts recorded by require_rate_limit onto the response."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        response = await call_next(request)

        counts = getattr(request.state, "rate_limit", None)
        if counts is not None:
            response.headers.update(rate_limit_headers(*counts))
        return response
