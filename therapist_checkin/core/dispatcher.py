"""
Notification Dispatcher.

Notifies a therapist through email and, when a phone is on file, SMS.

The two notification kinds have opposite failure policies:
- appointment confirmations raise DependencyError on any channel failure
- check-in notifications log failures and never raise
"""

import html
import logging
from datetime import datetime
from typing import Optional

from therapist_checkin.core.errors import DependencyError
from therapist_checkin.core.models import Appointment, Therapist
from therapist_checkin.core.ports import MessageSender, ShortMessageSender

logger = logging.getLogger(__name__)

CHECK_IN_SUBJECT = "Patient Check-in Notification"


def format_timestamp(value: Optional[str]) -> str:
    """Render an ISO timestamp for humans, e.g. "06/01/2024, 09:00:00 AM".

    Unparseable values are returned unchanged.
    """
    if not value:
        return ""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.strftime("%m/%d/%Y, %I:%M:%S %p")


class NotificationDispatcher:
    """Builds and sends therapist notifications over both channels."""

    def __init__(
        self,
        message_sender: MessageSender,
        short_message_sender: ShortMessageSender,
    ):
        self._messages = message_sender
        self._short_messages = short_message_sender

    # === Appointment confirmation ===

    async def send_appointment_confirmation(
        self,
        appointment: Appointment,
        therapist: Therapist,
    ) -> None:
        """Notify the therapist of a new booking.

        Raises:
            DependencyError: If either channel fails
        """
        subject = f"New Appointment: {appointment.patient_name}"
        body = (
            "A new appointment has been scheduled:\n\n"
            f"Patient: {appointment.patient_name}\n"
            f"Date: {appointment.date}\n"
            f"Time: {appointment.time_slot}\n"
            f"Status: {appointment.status.value if appointment.status else ''}"
        )
        sms = (
            f"New appointment scheduled with {appointment.patient_name} "
            f"on {appointment.date} at {appointment.time_slot}"
        )

        try:
            await self._deliver(therapist, subject, body, None, sms)
        except Exception as e:
            logger.error(
                f"Error sending appointment confirmation for {appointment.id}: {e}",
                exc_info=True,
            )
            if isinstance(e, DependencyError):
                raise
            raise DependencyError("Failed to send appointment confirmation") from e

    # === Check-in ===

    async def send_check_in_notification(
        self,
        check_in: Appointment,
        therapist: Therapist,
    ) -> None:
        """Notify the therapist that a patient has arrived.

        Never raises: a notification outage must not fail the check-in.
        """
        when = format_timestamp(check_in.check_in_time)
        body = (
            "A patient has checked in for their appointment with you "
            f"at {when}."
        )
        # Name and check-in time are client input
        markup = (
            f"<h2>{CHECK_IN_SUBJECT}</h2>"
            "<p>A patient has checked in for their appointment with you.</p>"
            f"<p><strong>Check-in Time:</strong> {html.escape(when)}</p>"
            f"<p><strong>Therapist:</strong> {html.escape(therapist.name)}</p>"
        )
        sms = f"Patient check-in notification: {body}"

        try:
            await self._deliver(therapist, CHECK_IN_SUBJECT, body, markup, sms)
        except Exception as e:
            logger.error(
                f"Error sending check-in notification for {check_in.id}: {e}",
                exc_info=True,
            )

    async def _deliver(
        self,
        therapist: Therapist,
        subject: str,
        body_text: str,
        body_html: Optional[str],
        sms_text: str,
    ) -> None:
        """Email first, then SMS if the therapist has a phone."""
        await self._messages.send(therapist.email, subject, body_text, body_html)

        if therapist.phone:
            await self._short_messages.send(therapist.phone, sms_text)
