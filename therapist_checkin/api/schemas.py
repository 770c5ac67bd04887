"""
Request/response bodies.

JSON uses camelCase field names (therapistId, timeSlot, checkInTime,
createdAt); snake_case is accepted on input as well.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from therapist_checkin.core.models import (
    Appointment,
    AppointmentRequest,
    CheckInRequest,
    Therapist,
    TherapistInput,
    TherapistUpdate,
)


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# === Therapists ===


class TherapistCreateBody(CamelModel):
    """Therapist registration request."""

    name: Optional[str] = Field(default=None, examples=["Dr. A"])
    email: Optional[str] = Field(default=None, examples=["a@x.com"])
    phone: Optional[str] = Field(
        default=None,
        description="US number in any format; stored as +1XXXXXXXXXX",
        examples=["(555) 123-4567"],
    )

    def to_domain(self) -> TherapistInput:
        return TherapistInput(name=self.name, email=self.email, phone=self.phone)


class TherapistUpdateBody(CamelModel):
    """Partial therapist update. Omitted or null fields are left unchanged."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    def to_domain(self) -> TherapistUpdate:
        return TherapistUpdate.from_mapping(self.model_dump(exclude_unset=True))


class TherapistOut(CamelModel):
    """Therapist record."""

    id: str
    name: str
    email: str
    phone: str

    @classmethod
    def from_domain(cls, therapist: Therapist) -> "TherapistOut":
        return cls(**therapist.to_dict())


# === Appointments ===


class AppointmentCreateBody(CamelModel):
    """Appointment booking request."""

    patient_name: Optional[str] = Field(default=None, examples=["Jane Doe"])
    therapist_id: Optional[str] = None
    date: Optional[str] = Field(default=None, examples=["2024-06-01"])
    time_slot: Optional[str] = Field(default=None, examples=["09:00"])

    def to_domain(self) -> AppointmentRequest:
        return AppointmentRequest(
            patient_name=self.patient_name,
            therapist_id=self.therapist_id,
            date=self.date,
            time_slot=self.time_slot,
        )


class CheckInCreateBody(CamelModel):
    """Check-in request. checkInTime defaults to now."""

    therapist_id: Optional[str] = None
    check_in_time: Optional[str] = None

    def to_domain(self) -> CheckInRequest:
        return CheckInRequest(
            therapist_id=self.therapist_id,
            check_in_time=self.check_in_time,
        )


class AppointmentOut(CamelModel):
    """Appointment or check-in record."""

    id: str
    therapist_id: str
    therapist_name: str
    created_at: str
    patient_name: Optional[str] = None
    date: Optional[str] = None
    time_slot: Optional[str] = None
    status: Optional[str] = None
    check_in_time: Optional[str] = None

    @classmethod
    def from_domain(cls, appointment: Appointment) -> "AppointmentOut":
        return cls(**appointment.to_dict())


class CheckInResponse(CamelModel):
    """Check-in confirmation."""

    message: str
    check_in: AppointmentOut


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str


class ErrorResponse(BaseModel):
    """Error response."""

    error: str
    message: str
