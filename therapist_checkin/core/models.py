"""
Domain records for the therapist directory and the appointment book.

Appointments and check-ins share one record type: a check-in carries
``check_in_time`` and none of the booking fields.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Set


class AppointmentStatus(str, Enum):
    """Lifecycle status of a scheduled appointment."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Valid status transitions. No operation applies them yet.
VALID_TRANSITIONS: dict[AppointmentStatus, Set[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: {
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    },
    AppointmentStatus.COMPLETED: set(),
    AppointmentStatus.CANCELLED: set(),
}


def can_transition(from_status: AppointmentStatus, to_status: AppointmentStatus) -> bool:
    """Check if a status transition is valid."""
    return to_status in VALID_TRANSITIONS.get(from_status, set())


def is_terminal_status(status: AppointmentStatus) -> bool:
    """Check if status is terminal (no further transitions)."""
    return not VALID_TRANSITIONS.get(status)


@dataclass
class Therapist:
    """Therapist directory entry."""

    id: str
    name: str
    email: str
    phone: str

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
        }


@dataclass
class Appointment:
    """Scheduled appointment or check-in record."""

    id: str
    therapist_id: str
    therapist_name: str
    created_at: str
    patient_name: Optional[str] = None
    date: Optional[str] = None
    time_slot: Optional[str] = None
    status: Optional[AppointmentStatus] = None
    check_in_time: Optional[str] = None

    @property
    def is_scheduled(self) -> bool:
        """True if this appointment currently holds its time slot."""
        return self.status == AppointmentStatus.SCHEDULED

    def to_dict(self) -> dict:
        """Convert to dictionary, leaving out fields the record does not carry."""
        result = {
            "id": self.id,
            "therapist_id": self.therapist_id,
            "therapist_name": self.therapist_name,
            "created_at": self.created_at,
        }

        if self.patient_name is not None:
            result["patient_name"] = self.patient_name
        if self.date is not None:
            result["date"] = self.date
        if self.time_slot is not None:
            result["time_slot"] = self.time_slot
        if self.status is not None:
            result["status"] = self.status.value
        if self.check_in_time is not None:
            result["check_in_time"] = self.check_in_time

        return result


# === Inputs ===


@dataclass
class TherapistInput:
    """Fields supplied when registering a therapist."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


@dataclass
class TherapistUpdate:
    """Partial therapist update.

    Only fields actually supplied are carried; a field given as None is
    treated as not supplied. ``id`` is never updatable.
    """

    UPDATABLE_FIELDS = ("name", "email", "phone")

    fields: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TherapistUpdate":
        """Build from a loosely-typed payload, dropping id, unknown keys and None."""
        return cls(
            fields={
                key: value
                for key, value in data.items()
                if key in cls.UPDATABLE_FIELDS and value is not None
            }
        )

    @classmethod
    def of(
        cls,
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> "TherapistUpdate":
        return cls.from_mapping({"name": name, "email": email, "phone": phone})

    @property
    def is_empty(self) -> bool:
        return not self.fields


@dataclass
class AppointmentRequest:
    """Request to book a time slot with a therapist."""

    patient_name: Optional[str] = None
    therapist_id: Optional[str] = None
    date: Optional[str] = None
    time_slot: Optional[str] = None


@dataclass
class CheckInRequest:
    """Request to record a patient's arrival."""

    therapist_id: Optional[str] = None
    check_in_time: Optional[str] = None
