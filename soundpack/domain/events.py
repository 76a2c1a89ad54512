"""
Domain Events

Frozen records of what the access gate and the fulfillment service did:
assets resolved, downloads authorized and welcome mails sent or failed.
"""

from abc import ABC
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict


@dataclass(frozen=True)
class DomainEvent(ABC):
    """
    Common fields of every event.

    Attributes:
        aggregate_id: ID of the thing the event is about (asset key, session id)
        occurred_at: Timestamp when the event occurred
    """
    aggregate_id: str
    occurred_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Flat dict with the event type name and ISO timestamp."""
        return {
            "event_type": self.__class__.__name__,
            "aggregate_id": self.aggregate_id,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True)
class DownloadAuthorizedEvent(DomainEvent):
    """
    Emitted when a download token is accepted.

    Attributes:
        aggregate_id: Logical key of the package being downloaded
        email: Buyer email carried by the token (may be empty)
        filename: Sanitized attachment filename
        token_prefix: First characters of the token, for correlation
    """
    email: str
    filename: str
    token_prefix: str

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "email": self.email,
            "filename": self.filename,
            "token_prefix": self.token_prefix,
        })
        return base_dict


@dataclass(frozen=True)
class AssetResolvedEvent(DomainEvent):
    """
    Emitted when the storage chain produced an asset.

    Attributes:
        aggregate_id: Logical asset key
        tier_name: Tier that served the bytes
        origin: "remote" or "local"
        size_bytes: Asset size
    """
    tier_name: str
    origin: str
    size_bytes: int

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "tier_name": self.tier_name,
            "origin": self.origin,
            "size_bytes": self.size_bytes,
        })
        return base_dict


@dataclass(frozen=True)
class WelcomeEmailSentEvent(DomainEvent):
    """
    Emitted after the welcome mail with the download link was sent.

    Attributes:
        aggregate_id: Checkout session id
        email: Recipient
    """
    email: str

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict["email"] = self.email
        return base_dict


@dataclass(frozen=True)
class WelcomeEmailFailedEvent(DomainEvent):
    """
    Emitted when the welcome mail could not be sent.

    Attributes:
        aggregate_id: Checkout session id
        email: Intended recipient
        error_message: Transport error message
    """
    email: str
    error_message: str

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "email": self.email,
            "error_message": self.error_message,
        })
        return base_dict
