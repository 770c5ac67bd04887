"""
Health Check Endpoints

Provides health, readiness, and liveness probes for monitoring
and load balancers. These routes do not require an API token.
"""

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from therapist_checkin import __version__
from therapist_checkin.api.dependencies import get_resources
from therapist_checkin.infra.database import check_db_health
from therapist_checkin.infra.redis import check_redis_health

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])

# Track application start time for uptime calculation
_start_time: Optional[datetime] = None


def set_start_time() -> None:
    """Set application start time. Called once on startup."""
    global _start_time
    _start_time = datetime.now(timezone.utc)


def get_uptime_seconds() -> Optional[float]:
    if _start_time is None:
        return None
    return (datetime.now(timezone.utc) - _start_time).total_seconds()


class HealthResponse(BaseModel):
    """Basic health check response."""
    status: str
    timestamp: datetime
    version: str
    environment: str
    storage: str


class ReadyResponse(BaseModel):
    """Readiness check response with dependency status."""
    status: str
    timestamp: datetime
    checks: dict[str, str]


class LiveResponse(BaseModel):
    """Liveness check response."""
    status: str
    timestamp: datetime
    uptime_seconds: Optional[float] = None


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns 200 if the application is running. Does not check dependencies.",
)
async def health(request: Request) -> HealthResponse:
    settings = get_resources(request).settings
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        environment=settings.app_env,
        storage=settings.storage_backend,
    )


async def _probe(name: str, check: Callable[[], Awaitable[bool]]) -> str:
    """Run one dependency check and report ok/failed/error."""
    try:
        healthy = await check()
    except Exception as e:
        logger.error(f"Readiness check: {name} error - {e}")
        return "error"

    if not healthy:
        logger.warning(f"Readiness check: {name} unhealthy")
        return "failed"
    return "ok"


@router.get(
    "/ready",
    response_model=ReadyResponse,
    summary="Readiness probe",
    description="Checks database and Redis connectivity. Returns 503 if any dependency is unavailable.",
    responses={
        200: {"description": "All dependencies are ready"},
        503: {"description": "One or more dependencies are unavailable"},
    },
)
async def ready(request: Request) -> ReadyResponse:
    """
    Readiness probe.

    Checks:
    - Database connectivity (SQL storage only)
    - Redis connectivity (when rate limiting is enabled)

    Returns 503 if any check fails.
    """
    resources = get_resources(request)
    checks = {"database": "memory", "redis": "disabled"}

    if resources.uses_sql:
        checks["database"] = await _probe(
            "Database", lambda: check_db_health(resources.session_factory)
        )
    if resources.redis is not None:
        checks["redis"] = await _probe("Redis", lambda: check_redis_health(resources.redis))

    all_ok = all(value in ("ok", "memory", "disabled") for value in checks.values())
    response = ReadyResponse(
        status="ready" if all_ok else "not_ready",
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )

    if not all_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(mode="json"),
        )

    return response


@router.get(
    "/live",
    response_model=LiveResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="Returns 200 if the process is alive.",
)
async def live() -> LiveResponse:
    return LiveResponse(
        status="alive",
        timestamp=datetime.now(timezone.utc),
        uptime_seconds=get_uptime_seconds(),
    )
