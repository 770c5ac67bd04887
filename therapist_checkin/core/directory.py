"""
Therapist Directory.

Owns therapist identity, validation, phone normalization and the
case-insensitive name uniqueness rule.
"""

import logging
import re
from typing import Optional

from therapist_checkin.core.errors import ConflictError, ValidationError
from therapist_checkin.core.models import Therapist, TherapistInput, TherapistUpdate
from therapist_checkin.core.ports import IdGenerator, TherapistRepository

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")

COUNTRY_CODE = "1"
PHONE_DIGITS = 11


def normalize_phone(raw: str) -> str:
    """Normalize a US phone number to E.164.

    Strips every non-digit, prepends the country digit if missing and
    requires exactly 11 digits.

    Args:
        raw: Phone number as typed

    Returns:
        "+" followed by 11 digits

    Raises:
        ValidationError: If the result is not 11 digits
    """
    digits = _NON_DIGITS.sub("", raw or "")
    if not digits.startswith(COUNTRY_CODE):
        digits = COUNTRY_CODE + digits

    if len(digits) != PHONE_DIGITS:
        raise ValidationError(
            "Invalid phone number format. Please provide a valid US phone number."
        )

    return f"+{digits}"


class TherapistDirectory:
    """
    CRUD over therapist records.

    Name uniqueness is only checked at creation and is a plain
    read-then-write: concurrent creations with the same name can both
    succeed unless ``conditional_writes`` asks storage to re-check.
    Renames through ``update`` are not checked at all.
    """

    def __init__(
        self,
        repository: TherapistRepository,
        id_generator: Optional[IdGenerator] = None,
        conditional_writes: bool = False,
    ):
        """Initialize directory.

        Args:
            repository: Therapist storage
            id_generator: Identifier source (UUID4 by default)
            conditional_writes: Pass the uniqueness precondition to storage
        """
        self._repository = repository
        self._ids = id_generator or IdGenerator()
        self._conditional_writes = conditional_writes

    async def list(self) -> list[Therapist]:
        """Return every therapist (full scan, no pagination)."""
        return await self._repository.scan_all()

    async def get(self, therapist_id: str) -> Optional[Therapist]:
        """Return the therapist, or None if there is no such id."""
        return await self._repository.get_by_id(therapist_id)

    async def create(self, data: TherapistInput) -> Therapist:
        """Register a therapist.

        Args:
            data: Name, email and phone (all required)

        Returns:
            Stored therapist with assigned id and normalized phone

        Raises:
            ValidationError: Missing field or unusable phone number
            ConflictError: Name already taken (case-insensitive)
        """
        if not data.name or not data.email or not data.phone:
            raise ValidationError(
                "Missing required fields. Name, email, and phone are required."
            )

        phone = normalize_phone(data.phone)

        existing = await self._repository.scan_all()
        wanted = data.name.lower()
        if any(t.name.lower() == wanted for t in existing):
            logger.warning(f"Duplicate therapist name rejected: {data.name!r}")
            raise ConflictError("A therapist with this name already exists")

        therapist = Therapist(
            id=self._ids.new_id(),
            name=data.name,
            email=data.email,
            phone=phone,
        )

        await self._repository.put(
            therapist,
            require_unique_name=self._conditional_writes,
        )
        logger.info(f"Therapist created: {therapist.id}")
        return therapist

    async def update(self, therapist_id: str, update: TherapistUpdate) -> None:
        """Apply a partial update.

        An empty update is a successful no-op. The new name is not
        checked for uniqueness.
        """
        if update.is_empty:
            logger.debug(f"Empty update for therapist {therapist_id} ignored")
            return

        await self._repository.update_fields(therapist_id, dict(update.fields))
        logger.info(f"Therapist updated: {therapist_id} ({', '.join(sorted(update.fields))})")

    async def delete(self, therapist_id: str) -> None:
        """Delete a therapist. Unknown ids are not an error."""
        await self._repository.delete_by_id(therapist_id)
        logger.info(f"Therapist deleted: {therapist_id}")
