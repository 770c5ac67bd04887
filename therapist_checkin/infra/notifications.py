"""
Notification transports.

Email goes through the Resend HTTP API, SMS through the Twilio REST API,
both over httpx. When credentials are missing the logging transports are
used instead (development / degraded mode).

Every transport raises DependencyError when delivery fails.
"""

import logging
from typing import Optional

import httpx

from therapist_checkin.config import Settings
from therapist_checkin.core.errors import DependencyError
from therapist_checkin.core.ports import MessageSender, ShortMessageSender

logger = logging.getLogger(__name__)


def mask_phone(phone: str) -> str:
    """Mask a phone number for logging: +1555***4567."""
    if len(phone) < 8:
        return "***"
    return f"{phone[:5]}***{phone[-4:]}"


class _HttpTransport:
    """Lazily created, reusable httpx client."""

    def __init__(self, base_url: str, timeout: float):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None


class ResendEmailSender(_HttpTransport, MessageSender):
    """
    Email via Resend.

    POST /emails with a bearer API key.
    """

    def __init__(
        self,
        api_key: str,
        from_address: str,
        base_url: str = "https://api.resend.com",
        timeout: float = 10.0,
    ):
        super().__init__(base_url, timeout)
        self.api_key = api_key
        self.from_address = from_address

    async def send(
        self,
        to_address: str,
        subject: str,
        body_text: str,
        body_html: Optional[str] = None,
    ) -> None:
        """Send an email.

        Args:
            to_address: Recipient email
            subject: Subject line
            body_text: Plain text body
            body_html: Optional HTML body

        Raises:
            DependencyError: Transport error or non-2xx response
        """
        client = await self._get_client()

        payload: dict = {
            "from": self.from_address,
            "to": [to_address],
            "subject": subject,
            "text": body_text,
        }
        if body_html:
            payload["html"] = body_html

        try:
            response = await client.post(
                "/emails",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Email transport error: {e}")
            raise DependencyError("Email delivery failed") from e

        if response.status_code not in (200, 201, 202):
            logger.error(
                f"Email rejected: status={response.status_code} body={response.text[:200]}"
            )
            raise DependencyError("Email delivery failed")

        logger.info(f"Email sent: subject={subject!r}")


class TwilioSmsSender(_HttpTransport, ShortMessageSender):
    """
    SMS via Twilio.

    POST /Accounts/{sid}/Messages.json with basic auth.
    """

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        base_url: str = "https://api.twilio.com/2010-04-01",
        timeout: float = 10.0,
    ):
        super().__init__(base_url, timeout)
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number

    async def send(self, to_number: str, body_text: str) -> None:
        """Send an SMS.

        Args:
            to_number: Recipient in E.164 format
            body_text: Message content

        Raises:
            DependencyError: Bad number, transport error or non-2xx response
        """
        if not to_number.startswith("+"):
            logger.warning(f"Phone number not in E.164 format: {mask_phone(to_number)}")
            raise DependencyError("SMS delivery failed")

        client = await self._get_client()

        try:
            response = await client.post(
                f"/Accounts/{self.account_sid}/Messages.json",
                auth=(self.account_sid, self.auth_token),
                data={
                    "To": to_number,
                    "From": self.from_number,
                    "Body": body_text,
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"SMS transport error: {e}")
            raise DependencyError("SMS delivery failed") from e

        if response.status_code not in (200, 201):
            logger.error(
                f"SMS rejected: status={response.status_code} to={mask_phone(to_number)}"
            )
            raise DependencyError("SMS delivery failed")

        sid = response.json().get("sid")
        logger.info(f"SMS sent to {mask_phone(to_number)} (SID: {sid})")


class LoggingEmailSender(MessageSender):
    """Email transport that only logs. Used when Resend is not configured."""

    async def send(
        self,
        to_address: str,
        subject: str,
        body_text: str,
        body_html: Optional[str] = None,
    ) -> None:
        logger.info(f"[email not configured] to={to_address} subject={subject!r}")

    async def close(self) -> None:
        return None


class LoggingSmsSender(ShortMessageSender):
    """SMS transport that only logs. Used when Twilio is not configured."""

    async def send(self, to_number: str, body_text: str) -> None:
        logger.info(f"[sms not configured] to={mask_phone(to_number)} body={body_text!r}")

    async def close(self) -> None:
        return None


def build_message_sender(settings: Settings) -> MessageSender:
    """Resend sender if configured, logging sender otherwise."""
    if not settings.email_configured:
        logger.warning("RESEND_API_KEY not set - emails will only be logged")
        return LoggingEmailSender()
    return ResendEmailSender(
        api_key=settings.resend_api_key,
        from_address=settings.notification_email,
        base_url=settings.resend_api_url,
        timeout=settings.notification_timeout,
    )


def build_short_message_sender(settings: Settings) -> ShortMessageSender:
    """Twilio sender if configured, logging sender otherwise."""
    if not settings.sms_configured:
        logger.warning("Twilio credentials not set - SMS will only be logged")
        return LoggingSmsSender()
    return TwilioSmsSender(
        account_sid=settings.twilio_account_sid,
        auth_token=settings.twilio_auth_token,
        from_number=settings.twilio_from_number,
        base_url=settings.twilio_api_url,
        timeout=settings.notification_timeout,
    )
