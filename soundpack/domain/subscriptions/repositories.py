"""
Subscription Repositories

Persistence interface for purchase records and their activity log.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"

# Fields a record can be looked up by.
LOOKUP_FIELDS = ("stripe_session_id", "email")


class ISubscriptionRepository(ABC):
    """Abstract key-value record store for subscriptions."""

    @abstractmethod
    def create_record(self, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Create a subscription record.

        Args:
            fields: Initial field values

        Returns:
            Stored record including its generated id, None on failure
        """
        pass

    @abstractmethod
    def update_record(self, record_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Merge fields into an existing record.

        Returns:
            Updated record, None if the record does not exist or the write failed
        """
        pass

    @abstractmethod
    def find_by_key(self, field: str, value: str) -> Optional[Dict[str, Any]]:
        """
        Find a record by one of its lookup fields.

        A session id matches its record whatever the status. An email
        matches the most recent completed record for that address, so a
        later pending checkout never hides an earlier purchase.

        Args:
            field: One of LOOKUP_FIELDS
            value: Value to match

        Returns:
            Record if found, None otherwise
        """
        pass

    @abstractmethod
    def append_log(self, record_id: str, event: Dict[str, Any]) -> None:
        """
        Append an activity log event to a record. Never raises.

        Args:
            record_id: Owning record id
            event: Log event dict with at least "type"
        """
        pass
