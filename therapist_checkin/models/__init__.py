"""SQLAlchemy models."""

from therapist_checkin.models.database import AppointmentRecord, Base, TherapistRecord

__all__ = ["AppointmentRecord", "Base", "TherapistRecord"]
