"""
Collaborator interfaces used by the directory and the scheduling engine.

Storage and transport adapters live in ``therapist_checkin.infra``; the
core only sees these contracts. Implementations raise ``DependencyError``
for infrastructure failures.
"""

import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from therapist_checkin.core.models import Appointment, Therapist


class TherapistRepository(ABC):
    """Key-value store of therapist records."""

    @abstractmethod
    async def put(self, therapist: Therapist, *, require_unique_name: bool = False) -> None:
        """Store a therapist record.

        Args:
            therapist: Record to store
            require_unique_name: Re-check case-insensitive name uniqueness
                at write time and raise ConflictError if taken
        """

    @abstractmethod
    async def get_by_id(self, therapist_id: str) -> Optional[Therapist]:
        """Return the therapist or None."""

    @abstractmethod
    async def scan_all(self) -> list[Therapist]:
        """Return every therapist record."""

    @abstractmethod
    async def update_fields(self, therapist_id: str, fields: dict[str, str]) -> None:
        """Overwrite the given fields. ``id`` is never written."""

    @abstractmethod
    async def delete_by_id(self, therapist_id: str) -> None:
        """Delete if exists. Missing ids are not an error."""


class AppointmentRepository(ABC):
    """Key-value store of appointment and check-in records."""

    @abstractmethod
    async def put(self, appointment: Appointment, *, require_free_slot: bool = False) -> None:
        """Store an appointment record.

        Args:
            appointment: Record to store
            require_free_slot: Re-check at write time that no scheduled
                appointment holds the same therapist/date/slot and raise
                ConflictError if one does
        """

    @abstractmethod
    async def get_by_id(self, appointment_id: str) -> Optional[Appointment]:
        """Return the appointment or None."""

    @abstractmethod
    async def query_by_therapist_and_date(
        self,
        therapist_id: str,
        date: str,
    ) -> list[Appointment]:
        """Return all records for a therapist on a date."""


class MessageSender(ABC):
    """Email channel."""

    @abstractmethod
    async def send(
        self,
        to_address: str,
        subject: str,
        body_text: str,
        body_html: Optional[str] = None,
    ) -> None:
        """Send a message. Raises on failure."""


class ShortMessageSender(ABC):
    """SMS channel."""

    @abstractmethod
    async def send(self, to_number: str, body_text: str) -> None:
        """Send a short message. Raises on failure."""


class IdGenerator:
    """Produces opaque unique identifiers (UUID4 strings)."""

    def new_id(self) -> str:
        return str(uuid.uuid4())


class Clock:
    """Produces ISO-8601 UTC timestamps."""

    def now(self) -> str:
        return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace(
            "+00:00", "Z"
        )
