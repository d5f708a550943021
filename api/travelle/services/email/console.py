"""
Console Email Provider - development mode, logs instead of delivering
"""
import logging
import uuid

from .base import EmailProvider, OutgoingEmail, SendReceipt

logger = logging.getLogger(__name__)


class ConsoleProvider(EmailProvider):
    """Logs message details; used when no real transport is configured"""

    name = "console"

    async def send(self, email: OutgoingEmail) -> SendReceipt:
        logger.info(f"[MOCK EMAIL] To: {email.to} | Subject: {email.subject}")
        logger.debug(f"[MOCK EMAIL] Body:\n{email.html}")
        return SendReceipt(provider_name=self.name, message_id=f"console-{uuid.uuid4().hex}", dev=True)
