"""
Mail Transport Interface

Outbound mail is a sink: the domain hands over a finished message and gets
back delivery information or a MailDeliveryError.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class OutboundMessage:
    """
    A fully rendered message ready to send.

    Attributes:
        to: Recipient address
        subject: Subject line
        html: HTML body
        text: Plain text alternative
        attachments: Paths of files to attach
        headers: Extra mail headers
    """

    to: str
    subject: str
    html: str
    text: str = ""
    attachments: List[str] = field(default_factory=list)
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class DeliveryInfo:
    """Result of a successful send."""

    transport: str
    recipient: str
    detail: Optional[str] = None


class IMailTransport(ABC):
    """Sends rendered messages."""

    @abstractmethod
    def send(self, message: OutboundMessage) -> DeliveryInfo:
        """
        Send a message.

        Raises:
            MailDeliveryError: If the transport is unconfigured or delivery failed
        """
        pass
