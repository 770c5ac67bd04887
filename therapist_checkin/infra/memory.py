"""
In-memory repositories.

Dictionary-backed storage for development (STORAGE_BACKEND=memory) and
tests. Records are copied on the way in and out so callers cannot
mutate stored state.
"""

import logging
from dataclasses import replace
from typing import Optional

from therapist_checkin.core.errors import ConflictError
from therapist_checkin.core.models import Appointment, Therapist, TherapistUpdate
from therapist_checkin.core.ports import AppointmentRepository, TherapistRepository

logger = logging.getLogger(__name__)


class InMemoryTherapistRepository(TherapistRepository):
    """Therapist storage in a dict keyed by id."""

    def __init__(self):
        self._records: dict[str, Therapist] = {}

    async def put(self, therapist: Therapist, *, require_unique_name: bool = False) -> None:
        if require_unique_name:
            wanted = therapist.name.lower()
            if any(
                t.name.lower() == wanted and t.id != therapist.id
                for t in self._records.values()
            ):
                raise ConflictError("A therapist with this name already exists")
        self._records[therapist.id] = replace(therapist)

    async def get_by_id(self, therapist_id: str) -> Optional[Therapist]:
        record = self._records.get(therapist_id)
        return replace(record) if record else None

    async def scan_all(self) -> list[Therapist]:
        return [replace(t) for t in self._records.values()]

    async def update_fields(self, therapist_id: str, fields: dict[str, str]) -> None:
        record = self._records.get(therapist_id)
        if record is None:
            logger.debug(f"Update for unknown therapist {therapist_id} ignored")
            return
        values = {k: v for k, v in fields.items() if k in TherapistUpdate.UPDATABLE_FIELDS}
        self._records[therapist_id] = replace(record, **values)

    async def delete_by_id(self, therapist_id: str) -> None:
        self._records.pop(therapist_id, None)


class InMemoryAppointmentRepository(AppointmentRepository):
    """Appointment storage in a dict keyed by id."""

    def __init__(self):
        self._records: dict[str, Appointment] = {}

    async def put(self, appointment: Appointment, *, require_free_slot: bool = False) -> None:
        if require_free_slot and appointment.time_slot is not None:
            if any(
                a.therapist_id == appointment.therapist_id
                and a.date == appointment.date
                and a.time_slot == appointment.time_slot
                and a.is_scheduled
                for a in self._records.values()
            ):
                raise ConflictError("Time slot is not available")
        self._records[appointment.id] = replace(appointment)

    async def get_by_id(self, appointment_id: str) -> Optional[Appointment]:
        record = self._records.get(appointment_id)
        return replace(record) if record else None

    async def query_by_therapist_and_date(
        self,
        therapist_id: str,
        date: str,
    ) -> list[Appointment]:
        return [
            replace(a)
            for a in self._records.values()
            if a.therapist_id == therapist_id and a.date == date
        ]

    def __len__(self) -> int:
        return len(self._records)
