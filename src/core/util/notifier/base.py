from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class MailSendResult:
    success: bool
    message_id: str | None = None
    error: str | None = None


class BaseMailTransport(ABC):
    """Outbound mail transport: send(to, subject, html, text) -> MailSendResult"""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    @abstractmethod
    async def send(self, to: str, subject: str, html: str, text: str | None = None) -> MailSendResult:
        """
        Deliver one message to one recipient.
        Implementations report failure through the result instead of raising.
        """
        ...
