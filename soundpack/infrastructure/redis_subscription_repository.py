"""
Redis Subscription Repository

Stores subscription records as JSON documents with secondary index keys for
the checkout session id and the buyer email. Activity log events are kept in
a Redis list per record. Only completed records are indexed by email.

Key layout (under the repository prefix):
    subscription:<id>                  record JSON
    subscription:<id>:logs             list of log event JSON
    subscription:by_session:<session>  record id
    subscription:by_email:<email>      id of the most recent completed record
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from soundpack.domain.subscriptions import (
    LOOKUP_FIELDS,
    STATUS_COMPLETED,
    STATUS_PENDING,
    ISubscriptionRepository,
)
from soundpack.infrastructure.redis_repository import RedisRepository

logger = logging.getLogger(__name__)

_INDEX_NAMES = {
    "stripe_session_id": "by_session",
    "email": "by_email",
}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class RedisSubscriptionRepository(ISubscriptionRepository):
    """ISubscriptionRepository backed by Redis."""

    def __init__(self, redis_repo: RedisRepository):
        self.redis_repo = redis_repo

    @staticmethod
    def _record_key(record_id: str) -> str:
        return f"subscription:{record_id}"

    @staticmethod
    def _index_key(field: str, value: str) -> str:
        if field == "email":
            value = value.strip().lower()
        return f"subscription:{_INDEX_NAMES[field]}:{value}"

    def _write_indexes(self, record: Dict[str, Any]) -> None:
        for field in LOOKUP_FIELDS:
            value = record.get(field)
            if field == "email" and record.get("status") != STATUS_COMPLETED:
                continue
            if value:
                self.redis_repo.set_value(self._index_key(field, str(value)), record["id"])

    def create_record(self, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        now = _now_iso()
        record = {
            "status": STATUS_PENDING,
            "email_sent": False,
            "amount_paid": None,
            "currency": None,
            **fields,
            "id": str(uuid.uuid4()),
            "created_at": now,
            "updated_at": now,
        }
        if not self.redis_repo.set_json(self._record_key(record["id"]), record):
            return None

        self._write_indexes(record)
        logger.info(f"Created subscription record {record['id']}")
        return record

    def update_record(self, record_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        record = self.redis_repo.get_json(self._record_key(record_id))
        if record is None:
            logger.warning(f"Subscription record {record_id} not found for update")
            return None

        record.update(fields)
        record["id"] = record_id
        record["updated_at"] = _now_iso()
        if not self.redis_repo.set_json(self._record_key(record_id), record):
            return None

        self._write_indexes(record)
        return record

    def find_by_key(self, field: str, value: str) -> Optional[Dict[str, Any]]:
        if field not in _INDEX_NAMES:
            raise ValueError(f"Cannot look up subscriptions by {field!r}")
        if not value:
            return None

        record_id = self.redis_repo.get_value(self._index_key(field, value))
        if record_id is None:
            return None
        return self.redis_repo.get_json(self._record_key(record_id))

    def append_log(self, record_id: str, event: Dict[str, Any]) -> None:
        if not record_id:
            logger.warning(f"Dropping {event.get('type')} log event with no record")
            return

        entry = {"occurred_at": _now_iso(), **event, "subscription_id": record_id}
        key = f"{self._record_key(record_id)}:logs"

        try:
            if not self.redis_repo.push_json(key, entry):
                logger.warning(f"Failed to append {event.get('type')} log event")
        except Exception as e:
            logger.error(f"Unexpected error appending log event: {e}", exc_info=True)
