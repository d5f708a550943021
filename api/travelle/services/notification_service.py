"""
Notification Service - formats and dispatches transactional emails
"""
import logging
from functools import lru_cache
from typing import Optional

from prometheus_client import Counter

from travelle.config import settings
from travelle.errors import EmailDispatchFailure
from travelle.schemas.email import EmailResult
from travelle.schemas.trip_list import TripList
from travelle.services.email import EmailProvider, EmailProviderError, OutgoingEmail, get_email_provider
from travelle.services.email.templates import (
    NotificationEmail,
    PasswordRecoveryEmail,
    TripCongratulationsEmail,
    TripReminderEmail,
    render_email,
)

logger = logging.getLogger(__name__)

EMAILS_SENT = Counter(
    "emails_sent_total",
    "Transactional emails by template and outcome",
    ["template", "status"],
)


class NotificationService:
    """
    Renders typed email payloads and hands them to the configured provider.

    send_email never raises: transport failures come back as
    EmailResult(success=False) so callers decide whether to surface them.
    """

    def __init__(self, provider: Optional[EmailProvider] = None, frontend_url: str = settings.FRONTEND_URL):
        self.provider = provider or get_email_provider()
        self.frontend_url = frontend_url.rstrip("/")

    async def send_email(self, to: str, subject: str, html: str, template: str = "raw") -> EmailResult:
        try:
            receipt = await self.provider.send(OutgoingEmail(to=to, subject=subject, html=html))
        except EmailProviderError as e:
            logger.error(f"Email to {to} failed via {e.provider_name}: {e.message}")
            EMAILS_SENT.labels(template=template, status="failed").inc()
            return EmailResult(success=False, error=e.message)
        except Exception as e:
            logger.error(f"Unexpected email failure to {to}: {e}", exc_info=True)
            EMAILS_SENT.labels(template=template, status="failed").inc()
            return EmailResult(success=False, error=str(e))

        EMAILS_SENT.labels(template=template, status="sent").inc()
        return EmailResult(success=True, message_id=receipt.message_id, dev=receipt.dev)

    async def deliver(self, to: str, subject: str, html: str) -> EmailResult:
        """Like send_email, but a failed send raises EmailDispatchFailure"""
        result = await self.send_email(to, subject, html)
        if not result.success:
            raise EmailDispatchFailure(result.error or "Email could not be sent")
        return result

    async def _send_payload(self, to: str, payload) -> EmailResult:
        rendered = render_email(payload)
        return await self.send_email(to, rendered.subject, rendered.html, template=payload.template)

    # Account emails

    async def send_password_recovery(self, email: str, token: str) -> EmailResult:
        reset_url = f"{self.frontend_url}/reset-password/{token}"
        payload = PasswordRecoveryEmail(
            reset_url=reset_url,
            expires_in_minutes=settings.PASSWORD_RESET_TOKEN_TTL_MINUTES,
        )
        return await self._send_payload(email, payload)

    async def send_notification(self, email: str, subject: str, message_html: str) -> EmailResult:
        return await self._send_payload(email, NotificationEmail(title=subject, message_html=message_html))

    async def send_security_alert(self, email: str) -> EmailResult:
        return await self.send_notification(
            email,
            "Security Alert - Password Reset Attempts Exceeded",
            "<p>We've detected multiple failed attempts to reset your password.</p>"
            "<p>For security reasons, the reset link has been invalidated.</p>"
            "<p>If this wasn't you, we recommend changing your password immediately.</p>",
        )

    async def send_password_changed(self, email: str) -> EmailResult:
        return await self.send_notification(
            email,
            "Password Reset Successful",
            "<p>Your password has been successfully reset.</p>"
            "<p>If you did not request this change, please contact our support team immediately.</p>",
        )

    # Trip emails

    def trip_url(self, trip_list: TripList) -> str:
        return f"{self.frontend_url}/viajes/{trip_list.id}"

    async def send_trip_congratulations(self, email: str, trip_list: TripList) -> EmailResult:
        payload = TripCongratulationsEmail(
            destination=trip_list.destination,
            trip_url=self.trip_url(trip_list),
            start_date=trip_list.start_date,
            end_date=trip_list.end_date,
        )
        return await self._send_payload(email, payload)

    async def send_trip_reminder(self, email: str, trip_list: TripList, kind: str) -> EmailResult:
        pending = trip_list.pending_items
        payload = TripReminderEmail(
            kind=kind,
            destination=trip_list.destination,
            trip_url=self.trip_url(trip_list),
            completion_percent=round(trip_list.completion),
            pending_count=len(pending),
            shown_items=[item.text for item in pending[:settings.TRIP_REMINDER_MAX_ITEMS]],
        )
        return await self._send_payload(email, payload)


@lru_cache(maxsize=1)
def get_notification_service() -> NotificationService:
    """
    Dependency that provides the notification service
    Usage: notifications: NotificationService = Depends(get_notification_service)
    """
    return NotificationService()
