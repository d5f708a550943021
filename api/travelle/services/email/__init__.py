"""
Email Providers & Templates - transports behind one interface
"""
import logging

from travelle.config import settings
from .base import EmailProvider, EmailProviderError, OutgoingEmail, SendReceipt
from .console import ConsoleProvider
from .smtp import SmtpProvider
from .resend import ResendProvider

logger = logging.getLogger(__name__)


def get_email_provider() -> EmailProvider:
    """
    Build the provider named by EMAIL_PROVIDER.

    Falls back to the console provider when the chosen transport lacks credentials.
    """
    name = settings.EMAIL_PROVIDER.lower()

    if name == "smtp":
        provider = SmtpProvider(
            from_email=settings.SMTP_USERNAME or settings.FROM_EMAIL,
            from_name=settings.FROM_NAME,
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            secure=settings.SMTP_SECURE,
        )
    elif name == "resend":
        provider = ResendProvider(
            from_email=settings.FROM_EMAIL,
            from_name=settings.FROM_NAME,
            api_key=settings.RESEND_API_KEY,
            api_url=settings.RESEND_API_URL,
        )
    else:
        provider = ConsoleProvider(settings.FROM_EMAIL, settings.FROM_NAME)

    if not provider.is_configured:
        logger.warning(f"Email provider '{provider.name}' is not configured, using console output")
        provider = ConsoleProvider(settings.FROM_EMAIL, settings.FROM_NAME)

    return provider


__all__ = [
    "EmailProvider",
    "EmailProviderError",
    "OutgoingEmail",
    "SendReceipt",
    "ConsoleProvider",
    "SmtpProvider",
    "ResendProvider",
    "get_email_provider",
]
