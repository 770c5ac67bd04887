"""
Scheduling service facade.

Single entry point for the transport layer: wires the directory, the
dispatcher and the engine from explicitly passed collaborators.
"""

from typing import Optional

from therapist_checkin.core.directory import TherapistDirectory
from therapist_checkin.core.dispatcher import NotificationDispatcher
from therapist_checkin.core.engine import SchedulingEngine
from therapist_checkin.core.models import (
    Appointment,
    AppointmentRequest,
    CheckInRequest,
    Therapist,
    TherapistInput,
    TherapistUpdate,
)
from therapist_checkin.core.ports import (
    AppointmentRepository,
    Clock,
    IdGenerator,
    MessageSender,
    ShortMessageSender,
    TherapistRepository,
)


class SchedulingService:
    """Therapist directory and scheduling operations."""

    def __init__(
        self,
        therapists: TherapistRepository,
        appointments: AppointmentRepository,
        message_sender: MessageSender,
        short_message_sender: ShortMessageSender,
        id_generator: Optional[IdGenerator] = None,
        clock: Optional[Clock] = None,
        conditional_writes: bool = False,
    ):
        ids = id_generator or IdGenerator()
        self.directory = TherapistDirectory(
            therapists,
            id_generator=ids,
            conditional_writes=conditional_writes,
        )
        self.dispatcher = NotificationDispatcher(message_sender, short_message_sender)
        self.engine = SchedulingEngine(
            self.directory,
            appointments,
            self.dispatcher,
            id_generator=ids,
            clock=clock,
            conditional_writes=conditional_writes,
        )

    # === Therapists ===

    async def list_therapists(self) -> list[Therapist]:
        return await self.directory.list()

    async def get_therapist(self, therapist_id: str) -> Optional[Therapist]:
        return await self.directory.get(therapist_id)

    async def create_therapist(self, data: TherapistInput) -> Therapist:
        return await self.directory.create(data)

    async def update_therapist(self, therapist_id: str, data: TherapistUpdate) -> None:
        await self.directory.update(therapist_id, data)

    async def delete_therapist(self, therapist_id: str) -> None:
        await self.directory.delete(therapist_id)

    # === Appointments ===

    async def create_appointment(self, data: AppointmentRequest) -> Appointment:
        return await self.engine.create_appointment(data)

    async def create_check_in(self, data: CheckInRequest) -> Appointment:
        return await self.engine.create_check_in(data)

    async def get_appointment(self, appointment_id: str) -> Optional[Appointment]:
        return await self.engine.get_appointment(appointment_id)

    async def get_appointments_by_therapist_and_date(
        self,
        therapist_id: str,
        date: str,
    ) -> list[Appointment]:
        return await self.engine.get_appointments_by_therapist_and_date(therapist_id, date)
