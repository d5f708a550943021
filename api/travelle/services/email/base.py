"""
Base Email Provider - Abstract interface for all email transports
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
import logging

logger = logging.getLogger(__name__)


@dataclass
class OutgoingEmail:
    """A fully rendered message ready for a transport"""
    to: str
    subject: str
    html: str


@dataclass
class SendReceipt:
    """Result from a provider send"""
    provider_name: str
    message_id: Optional[str] = None
    dev: bool = False


class EmailProvider(ABC):
    """
    Abstract base class for email transports.

    Console, SMTP and Resend providers implement this interface.
    """

    name: str = "base"

    def __init__(self, from_email: str, from_name: str):
        self.from_email = from_email
        self.from_name = from_name

    @property
    def sender(self) -> str:
        """Formatted From header: "Travelle" <noreply@...>"""
        return f'"{self.from_name}" <{self.from_email}>'

    @property
    def is_configured(self) -> bool:
        """Check if provider has required configuration (credentials, host)"""
        return True  # Override in subclasses

    @abstractmethod
    async def send(self, email: OutgoingEmail) -> SendReceipt:
        """
        Deliver one message.

        Raises:
            EmailProviderError: If the transport rejects the message
        """
        pass


class EmailProviderError(Exception):
    """Exception raised when a provider fails"""
    def __init__(self, provider_name: str, message: str, original_error: Optional[Exception] = None):
        self.provider_name = provider_name
        self.message = message
        self.original_error = original_error
        super().__init__(f"{provider_name}: {message}")
