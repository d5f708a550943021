"""
Resend Email Provider - HTTP email API
https://resend.com/docs/api-reference/emails/send-email
"""
import logging
from typing import Optional

import httpx

from .base import EmailProvider, EmailProviderError, OutgoingEmail, SendReceipt

logger = logging.getLogger(__name__)


class ResendProvider(EmailProvider):
    """Sends through the Resend REST API"""

    name = "resend"

    def __init__(
        self,
        from_email: str,
        from_name: str,
        api_key: str,
        api_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(from_email, from_name)
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def send(self, email: OutgoingEmail) -> SendReceipt:
        if not self.is_configured:
            raise EmailProviderError(self.name, "Resend API key not configured")

        payload = {
            "from": self.sender,
            "to": [email.to],
            "subject": email.subject,
            "html": email.html,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.api_url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise EmailProviderError(self.name, f"HTTP {e.response.status_code}: {e.response.text}", e) from e
        except httpx.HTTPError as e:
            raise EmailProviderError(self.name, str(e), e) from e

        logger.info(f"Resend message sent to {email.to}")
        return SendReceipt(provider_name=self.name, message_id=data.get("id"))
