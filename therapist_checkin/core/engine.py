"""
Scheduling Engine.

Books appointments against the therapist directory with a per-slot
conflict check, and records check-ins. Every storage and notification
call is awaited in sequence; nothing is rolled back if a later step
fails.
"""

import logging
from typing import Optional

from therapist_checkin.core.directory import TherapistDirectory
from therapist_checkin.core.dispatcher import NotificationDispatcher
from therapist_checkin.core.errors import ConflictError, NotFoundError, ValidationError
from therapist_checkin.core.models import (
    Appointment,
    AppointmentRequest,
    AppointmentStatus,
    CheckInRequest,
    Therapist,
)
from therapist_checkin.core.ports import AppointmentRepository, Clock, IdGenerator

logger = logging.getLogger(__name__)


class SchedulingEngine:
    """
    Orchestrates appointment booking and patient check-in.

    Coordinates:
    - Therapist lookup (directory)
    - Slot conflict detection (appointment storage)
    - Therapist notification (dispatcher)
    """

    def __init__(
        self,
        directory: TherapistDirectory,
        appointments: AppointmentRepository,
        dispatcher: NotificationDispatcher,
        id_generator: Optional[IdGenerator] = None,
        clock: Optional[Clock] = None,
        conditional_writes: bool = False,
    ):
        """Initialize engine.

        Args:
            directory: Therapist directory
            appointments: Appointment storage
            dispatcher: Notification dispatcher
            id_generator: Identifier source (UUID4 by default)
            clock: Timestamp source (UTC now by default)
            conditional_writes: Pass the free-slot precondition to storage
        """
        self._directory = directory
        self._appointments = appointments
        self._dispatcher = dispatcher
        self._ids = id_generator or IdGenerator()
        self._clock = clock or Clock()
        self._conditional_writes = conditional_writes

    async def create_appointment(self, request: AppointmentRequest) -> Appointment:
        """Book a time slot.

        The appointment is persisted before the confirmation is sent. If
        the confirmation fails, DependencyError propagates and the stored
        appointment is kept.

        Args:
            request: Patient name, therapist id, date and time slot

        Returns:
            The stored appointment (status scheduled)

        Raises:
            ValidationError: A field is missing
            NotFoundError: Unknown therapist
            ConflictError: Slot already held by a scheduled appointment
            DependencyError: Storage or confirmation failure
        """
        if not (
            request.patient_name
            and request.therapist_id
            and request.date
            and request.time_slot
        ):
            raise ValidationError(
                "Missing required fields. Patient name, therapist, date, and time slot are required."
            )

        therapist = await self._resolve_therapist(request.therapist_id)

        existing = await self._appointments.query_by_therapist_and_date(
            request.therapist_id,
            request.date,
        )
        if any(a.time_slot == request.time_slot and a.is_scheduled for a in existing):
            logger.warning(
                f"Slot conflict: therapist {request.therapist_id} "
                f"{request.date} {request.time_slot}"
            )
            raise ConflictError("Time slot is not available")

        appointment = Appointment(
            id=self._ids.new_id(),
            therapist_id=therapist.id,
            therapist_name=therapist.name,
            patient_name=request.patient_name,
            date=request.date,
            time_slot=request.time_slot,
            status=AppointmentStatus.SCHEDULED,
            created_at=self._clock.now(),
        )

        await self._appointments.put(
            appointment,
            require_free_slot=self._conditional_writes,
        )
        logger.info(
            f"Appointment booked: {appointment.id} "
            f"(therapist {therapist.id}, {appointment.date} {appointment.time_slot})"
        )

        await self._dispatcher.send_appointment_confirmation(appointment, therapist)

        return appointment

    async def create_check_in(self, request: CheckInRequest) -> Appointment:
        """Record a patient's arrival.

        The notification is best effort: the stored record is returned
        even if both channels fail.

        Raises:
            ValidationError: Therapist id missing
            NotFoundError: Unknown therapist
            DependencyError: Storage failure
        """
        if not request.therapist_id:
            raise ValidationError("Therapist ID is required")

        therapist = await self._resolve_therapist(request.therapist_id)

        now = self._clock.now()
        check_in = Appointment(
            id=self._ids.new_id(),
            therapist_id=therapist.id,
            therapist_name=therapist.name,
            check_in_time=request.check_in_time or now,
            created_at=now,
        )

        await self._appointments.put(check_in)
        logger.info(f"Check-in recorded: {check_in.id} (therapist {therapist.id})")

        await self._dispatcher.send_check_in_notification(check_in, therapist)

        return check_in

    async def get_appointment(self, appointment_id: str) -> Optional[Appointment]:
        """Return an appointment or check-in, or None."""
        return await self._appointments.get_by_id(appointment_id)

    async def get_appointments_by_therapist_and_date(
        self,
        therapist_id: str,
        date: str,
    ) -> list[Appointment]:
        """Return all records for a therapist on a date."""
        if not therapist_id or not date:
            raise ValidationError("Therapist ID and date are required")
        return await self._appointments.query_by_therapist_and_date(therapist_id, date)

    async def _resolve_therapist(self, therapist_id: str) -> Therapist:
        therapist = await self._directory.get(therapist_id)
        if therapist is None:
            raise NotFoundError("Therapist not found")
        return therapist
