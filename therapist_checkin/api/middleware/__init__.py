"""API middleware and guard dependencies."""

from therapist_checkin.api.middleware.auth import require_api_token
from therapist_checkin.api.middleware.rate_limit import RateLimitMiddleware, require_rate_limit

__all__ = ["RateLimitMiddleware", "require_api_token", "require_rate_limit"]
