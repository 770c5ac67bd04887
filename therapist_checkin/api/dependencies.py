"""
Application resources and FastAPI dependencies.

Long-lived collaborators (database engine, notification transports,
in-memory stores) are built once at startup and kept on
``app.state.resources``. A SchedulingService is assembled per request
from them.
"""

import logging
from dataclasses import dataclass
from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from therapist_checkin.config import Settings
from therapist_checkin.core.ports import (
    AppointmentRepository,
    Clock,
    IdGenerator,
    MessageSender,
    ShortMessageSender,
    TherapistRepository,
)
from therapist_checkin.core.service import SchedulingService
from therapist_checkin.infra.database import (
    close_db,
    create_engine,
    create_session_factory,
    init_db,
    session_scope,
)
from therapist_checkin.infra.memory import (
    InMemoryAppointmentRepository,
    InMemoryTherapistRepository,
)
from therapist_checkin.infra.notifications import (
    build_message_sender,
    build_short_message_sender,
)
from therapist_checkin.infra.redis import RedisClient
from therapist_checkin.infra.repositories import (
    SqlAppointmentRepository,
    SqlTherapistRepository,
)

logger = logging.getLogger(__name__)


@dataclass
class Resources:
    """Collaborators shared across requests."""

    settings: Settings
    message_sender: MessageSender
    short_message_sender: ShortMessageSender
    id_generator: IdGenerator
    clock: Clock
    engine: Optional[AsyncEngine] = None
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None
    therapist_repository: Optional[TherapistRepository] = None
    appointment_repository: Optional[AppointmentRepository] = None
    redis: Optional[RedisClient] = None

    @property
    def uses_sql(self) -> bool:
        return self.session_factory is not None

    def build_service(
        self,
        therapists: TherapistRepository,
        appointments: AppointmentRepository,
    ) -> SchedulingService:
        return SchedulingService(
            therapists=therapists,
            appointments=appointments,
            message_sender=self.message_sender,
            short_message_sender=self.short_message_sender,
            id_generator=self.id_generator,
            clock=self.clock,
            conditional_writes=self.settings.conditional_writes,
        )


async def build_resources(settings: Settings) -> Resources:
    """Create collaborators for the configured storage backend."""
    resources = Resources(
        settings=settings,
        message_sender=build_message_sender(settings),
        short_message_sender=build_short_message_sender(settings),
        id_generator=IdGenerator(),
        clock=Clock(),
    )

    if settings.rate_limit_enabled:
        resources.redis = RedisClient(settings.redis_url)

    if settings.storage_backend == "memory":
        logger.warning("Using in-memory storage - records are lost on restart")
        resources.therapist_repository = InMemoryTherapistRepository()
        resources.appointment_repository = InMemoryAppointmentRepository()
        return resources

    resources.engine = create_engine(settings)
    resources.session_factory = create_session_factory(resources.engine)

    # Create tables only in development - use migrations in production
    if settings.is_development:
        try:
            await init_db(resources.engine)
            logger.info("Database tables initialized")
        except Exception as e:
            logger.warning(f"Database init skipped: {e}")

    return resources


async def close_resources(resources: Resources) -> None:
    """Release transports and database connections."""
    for sender in (resources.message_sender, resources.short_message_sender):
        close = getattr(sender, "close", None)
        if close is not None:
            await close()

    if resources.redis is not None:
        await resources.redis.close()

    if resources.engine is not None:
        await close_db(resources.engine)
        logger.info("Database connections closed")


def get_resources(request: Request) -> Resources:
    """Resources attached to the running application."""
    return request.app.state.resources


async def get_service(request: Request) -> AsyncGenerator[SchedulingService, None]:
    """
    FastAPI dependency that provides a SchedulingService.

    With SQL storage, one session is opened per request and closed after
    the response; repositories commit each write themselves.

    Usage:
        @router.get("/therapists")
        async def list_therapists(service: SchedulingService = Depends(get_service)):
            return await service.list_therapists()
    """
    resources = get_resources(request)

    if not resources.uses_sql:
        yield resources.build_service(
            resources.therapist_repository,
            resources.appointment_repository,
        )
        return

    async with session_scope(resources.session_factory) as session:
        yield resources.build_service(
            SqlTherapistRepository(session),
            SqlAppointmentRepository(session),
        )
