"""
Subscriptions Domain

Purchase records created from checkout events and their activity log.
"""

from .repositories import (
    LOOKUP_FIELDS,
    STATUS_COMPLETED,
    STATUS_PENDING,
    ISubscriptionRepository,
)

__all__ = [
    "ISubscriptionRepository",
    "LOOKUP_FIELDS",
    "STATUS_COMPLETED",
    "STATUS_PENDING",
]
