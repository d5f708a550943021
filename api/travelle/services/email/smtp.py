"""
SMTP Email Provider
"""
import asyncio
import logging
import smtplib
from email.message import EmailMessage
from email.utils import make_msgid

from .base import EmailProvider, EmailProviderError, OutgoingEmail, SendReceipt

logger = logging.getLogger(__name__)


class SmtpProvider(EmailProvider):
    """
    Sends through an SMTP relay (Gmail by default).

    smtplib is blocking, so each send runs in a worker thread.
    """

    name = "smtp"

    def __init__(
        self,
        from_email: str,
        from_name: str,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        secure: bool = False,
        timeout: float = 15.0,
    ):
        super().__init__(from_email, from_name)
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.secure = secure
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.username and self.password)

    def _build_message(self, email: OutgoingEmail) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = email.subject
        message["From"] = self.sender
        message["To"] = email.to
        message["Message-ID"] = make_msgid(domain=self.from_email.split("@")[-1])
        message.set_content("This message requires an HTML-capable email client.")
        message.add_alternative(email.html, subtype="html")
        return message

    def _send_sync(self, message: EmailMessage) -> None:
        smtp_cls = smtplib.SMTP_SSL if self.secure else smtplib.SMTP
        with smtp_cls(self.host, self.port, timeout=self.timeout) as client:
            if not self.secure:
                client.starttls()
            if self.username:
                client.login(self.username, self.password)
            client.send_message(message)

    async def send(self, email: OutgoingEmail) -> SendReceipt:
        if not self.is_configured:
            raise EmailProviderError(self.name, "SMTP credentials not configured")

        message = self._build_message(email)
        try:
            await asyncio.to_thread(self._send_sync, message)
        except (smtplib.SMTPException, OSError) as e:
            raise EmailProviderError(self.name, str(e), e) from e

        logger.info(f"SMTP message sent to {email.to}")
        return SendReceipt(provider_name=self.name, message_id=message["Message-ID"])
