"""
Database Models

SQLAlchemy ORM tables backing the therapist directory and the appointment book.
"""

from typing import Optional

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class TherapistRecord(Base):
    """
    Therapist row.

    Name uniqueness is enforced by the directory, not by the schema:
    renames are allowed to collide.
    """

    __tablename__ = "therapists"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)

    def __repr__(self) -> str:
        return f"<TherapistRecord(id={self.id}, name='{self.name}')>"


class AppointmentRecord(Base):
    """
    Appointment or check-in row.

    Check-ins only carry check_in_time; bookings carry patient_name,
    date, time_slot and status. Timestamps are stored as ISO strings.
    """

    __tablename__ = "appointments"
    __table_args__ = (
        Index("idx_appointment_therapist_date", "therapist_id", "date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    therapist_id: Mapped[str] = mapped_column(String(36), nullable=False)
    therapist_name: Mapped[str] = mapped_column(String(255), nullable=False)
    patient_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    date: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    time_slot: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    check_in_time: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    created_at: Mapped[str] = mapped_column(String(40), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<AppointmentRecord(id={self.id}, therapist_id={self.therapist_id}, "
            f"date={self.date}, time_slot={self.time_slot}, status={self.status})>"
        )
