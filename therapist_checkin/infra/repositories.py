"""
SQL repositories.

Implement the storage contracts over an AsyncSession. Every write is
committed immediately, one record at a time, so a later failure in the
same request (e.g. a confirmation email) does not undo it.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from therapist_checkin.core.errors import ConflictError, DependencyError
from therapist_checkin.core.models import (
    Appointment,
    AppointmentStatus,
    Therapist,
    TherapistUpdate,
)
from therapist_checkin.core.ports import AppointmentRepository, TherapistRepository
from therapist_checkin.models.database import AppointmentRecord, TherapistRecord

logger = logging.getLogger(__name__)


@asynccontextmanager
async def storage_errors(operation: str) -> AsyncGenerator[None, None]:
    """Translate driver failures into DependencyError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"Storage failure during {operation}: {e}")
        raise DependencyError("Storage is unavailable") from e


def _to_therapist(row: TherapistRecord) -> Therapist:
    return Therapist(id=row.id, name=row.name, email=row.email, phone=row.phone)


def _to_appointment(row: AppointmentRecord) -> Appointment:
    return Appointment(
        id=row.id,
        therapist_id=row.therapist_id,
        therapist_name=row.therapist_name,
        created_at=row.created_at,
        patient_name=row.patient_name,
        date=row.date,
        time_slot=row.time_slot,
        status=AppointmentStatus(row.status) if row.status else None,
        check_in_time=row.check_in_time,
    )


class SqlTherapistRepository(TherapistRepository):
    """Therapist storage on the therapists table."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def put(self, therapist: Therapist, *, require_unique_name: bool = False) -> None:
        async with storage_errors("therapist put"):
            if require_unique_name:
                taken = await self._session.scalar(
                    select(func.count())
                    .select_from(TherapistRecord)
                    .where(func.lower(TherapistRecord.name) == therapist.name.lower())
                )
                if taken:
                    await self._session.rollback()
                    raise ConflictError("A therapist with this name already exists")

            await self._session.merge(
                TherapistRecord(
                    id=therapist.id,
                    name=therapist.name,
                    email=therapist.email,
                    phone=therapist.phone,
                )
            )
            await self._session.commit()

    async def get_by_id(self, therapist_id: str) -> Optional[Therapist]:
        async with storage_errors("therapist get"):
            row = await self._session.get(TherapistRecord, therapist_id)
        return _to_therapist(row) if row else None

    async def scan_all(self) -> list[Therapist]:
        async with storage_errors("therapist scan"):
            result = await self._session.execute(select(TherapistRecord))
            rows = result.scalars().all()
        return [_to_therapist(row) for row in rows]

    async def update_fields(self, therapist_id: str, fields: dict[str, str]) -> None:
        values = {
            key: value
            for key, value in fields.items()
            if key in TherapistUpdate.UPDATABLE_FIELDS
        }
        if not values:
            return

        async with storage_errors("therapist update"):
            await self._session.execute(
                update(TherapistRecord)
                .where(TherapistRecord.id == therapist_id)
                .values(**values)
            )
            await self._session.commit()

    async def delete_by_id(self, therapist_id: str) -> None:
        async with storage_errors("therapist delete"):
            await self._session.execute(
                delete(TherapistRecord).where(TherapistRecord.id == therapist_id)
            )
            await self._session.commit()


class SqlAppointmentRepository(AppointmentRepository):
    """Appointment storage on the appointments table."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def put(self, appointment: Appointment, *, require_free_slot: bool = False) -> None:
        async with storage_errors("appointment put"):
            if require_free_slot and appointment.time_slot is not None:
                held = await self._session.scalar(
                    select(func.count())
                    .select_from(AppointmentRecord)
                    .where(
                        and_(
                            AppointmentRecord.therapist_id == appointment.therapist_id,
                            AppointmentRecord.date == appointment.date,
                            AppointmentRecord.time_slot == appointment.time_slot,
                            AppointmentRecord.status == AppointmentStatus.SCHEDULED.value,
                        )
                    )
                )
                if held:
                    await self._session.rollback()
                    raise ConflictError("Time slot is not available")

            await self._session.merge(
                AppointmentRecord(
                    id=appointment.id,
                    therapist_id=appointment.therapist_id,
                    therapist_name=appointment.therapist_name,
                    patient_name=appointment.patient_name,
                    date=appointment.date,
                    time_slot=appointment.time_slot,
                    status=appointment.status.value if appointment.status else None,
                    check_in_time=appointment.check_in_time,
                    created_at=appointment.created_at,
                )
            )
            await self._session.commit()

    async def get_by_id(self, appointment_id: str) -> Optional[Appointment]:
        async with storage_errors("appointment get"):
            row = await self._session.get(AppointmentRecord, appointment_id)
        return _to_appointment(row) if row else None

    async def query_by_therapist_and_date(
        self,
        therapist_id: str,
        date: str,
    ) -> list[Appointment]:
        async with storage_errors("appointment query"):
            result = await self._session.execute(
                select(AppointmentRecord).where(
                    AppointmentRecord.therapist_id == therapist_id,
                    AppointmentRecord.date == date,
                )
            )
            rows = result.scalars().all()
        return [_to_appointment(row) for row in rows]
