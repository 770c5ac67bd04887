"""
Therapist Check-in API

FastAPI application entry point that ties all components together.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from therapist_checkin import __version__
from therapist_checkin.api.dependencies import build_resources, close_resources
from therapist_checkin.api.middleware import RateLimitMiddleware
from therapist_checkin.api.routes import appointments, checkin, health, therapists
from therapist_checkin.config import Settings, get_settings
from therapist_checkin.core.errors import SchedulingError

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    "validation_error": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "conflict": status.HTTP_409_CONFLICT,
    "dependency_error": status.HTTP_502_BAD_GATEWAY,
}


def setup_logging(settings: Settings) -> None:
    """Configure logging based on environment."""
    log_level = logging.DEBUG if settings.debug else logging.INFO
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Builds shared resources unless they were attached beforehand
    (tests attach in-memory ones).
    """
    # === STARTUP ===
    settings: Settings = app.state.settings
    setup_logging(settings)
    logger.info(f"Starting {settings.app_name} in {settings.app_env} mode")

    health.set_start_time()

    owns_resources = getattr(app.state, "resources", None) is None
    if owns_resources:
        app.state.resources = await build_resources(settings)

    resources = app.state.resources
    if resources.redis is not None and await resources.redis.get_client() is None:
        logger.warning("Redis unavailable - rate limiting bypassed until it returns")

    logger.info(f"Application ready at http://{settings.host}:{settings.port}")

    yield

    # === SHUTDOWN ===
    logger.info("Shutting down application...")

    if owns_resources:
        await close_resources(app.state.resources)

    logger.info("Shutdown complete")


async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    """Map core failures to HTTP responses."""
    status_code = ERROR_STATUS.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)

    if status_code >= 500:
        logger.error(
            f"{request.method} {request.url.path} failed: {exc.message}"
            f" | Cause: {exc.__cause__!r}"
        )
    else:
        logger.info(f"{request.method} {request.url.path} -> {status_code}: {exc.message}")

    return JSONResponse(status_code=status_code, content=exc.to_dict())


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle Pydantic validation errors."""
    errors = exc.errors()
    logger.warning(f"Validation error: {errors}")

    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "validation_error", "message": message},
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle uncaught exceptions."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "message": "Internal server error",
        },
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application for the given settings."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Therapist Check-in API",
        description="""
    Therapist directory, appointment booking and front-desk patient check-in.

    ## Authentication
    All API endpoints except health checks require the shared token in the `x-api-key` header.

    ## Notifications
    Therapists are notified by email and SMS when an appointment is booked
    or a patient checks in.
    """,
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["OPTIONS", "POST", "GET", "PUT", "DELETE"],
        allow_headers=["*"],
    )
    app.add_middleware(RateLimitMiddleware)

    app.add_exception_handler(SchedulingError, scheduling_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    @app.middleware("http")
    async def request_timing_middleware(request: Request, call_next):
        """Log request duration in debug mode."""
        start_time = time.time()
        try:
            return await call_next(request)
        finally:
            if settings.debug:
                duration = time.time() - start_time
                logger.debug(
                    f"{request.method} {request.url.path} "
                    f"completed in {duration:.3f}s"
                )

    # Health check routes (no auth required)
    app.include_router(health.router)

    app.include_router(therapists.router)
    app.include_router(appointments.router)
    app.include_router(checkin.router)

    @app.get("/", tags=["Root"])
    async def root() -> dict:
        return {
            "name": settings.app_name,
            "version": __version__,
            "status": "running",
            "environment": settings.app_env,
            "docs": "/docs" if settings.is_development else None,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "therapist_checkin.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level="debug" if settings.debug else "info",
    )
