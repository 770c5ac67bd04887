"""
Scheduling Core

Therapist directory, scheduling engine and notification dispatcher.

Usage:
    from therapist_checkin.core import SchedulingService, TherapistInput

    service = SchedulingService(
        therapists=therapist_repo,
        appointments=appointment_repo,
        message_sender=email_sender,
        short_message_sender=sms_sender,
    )
    therapist = await service.create_therapist(
        TherapistInput(name="Dr. A", email="a@x.com", phone="5551234567")
    )
    print(therapist.phone)  # +15551234567
"""

# Errors
from therapist_checkin.core.errors import (
    SchedulingError,
    ValidationError,
    NotFoundError,
    ConflictError,
    DependencyError,
)

# Records and inputs
from therapist_checkin.core.models import (
    Appointment,
    AppointmentRequest,
    AppointmentStatus,
    CheckInRequest,
    Therapist,
    TherapistInput,
    TherapistUpdate,
    can_transition,
    is_terminal_status,
)

# Collaborator contracts
from therapist_checkin.core.ports import (
    AppointmentRepository,
    Clock,
    IdGenerator,
    MessageSender,
    ShortMessageSender,
    TherapistRepository,
)

# Components
from therapist_checkin.core.directory import TherapistDirectory, normalize_phone
from therapist_checkin.core.dispatcher import NotificationDispatcher
from therapist_checkin.core.engine import SchedulingEngine
from therapist_checkin.core.service import SchedulingService

__all__ = [
    # Errors
    "SchedulingError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "DependencyError",
    # Records and inputs
    "Appointment",
    "AppointmentRequest",
    "AppointmentStatus",
    "CheckInRequest",
    "Therapist",
    "TherapistInput",
    "TherapistUpdate",
    "can_transition",
    "is_terminal_status",
    # Collaborator contracts
    "AppointmentRepository",
    "Clock",
    "IdGenerator",
    "MessageSender",
    "ShortMessageSender",
    "TherapistRepository",
    # Components
    "TherapistDirectory",
    "normalize_phone",
    "NotificationDispatcher",
    "SchedulingEngine",
    "SchedulingService",
]
