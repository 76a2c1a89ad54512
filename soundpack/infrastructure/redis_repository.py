"""
Redis Repository Base Class

Key-prefixed helpers for the three value shapes the subscription store
uses: JSON documents, plain string values and append-only JSON lists.
Redis errors are logged and reported as a falsy result.
"""

import json
import logging
from typing import Any, Dict, Optional, Union

import redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


def _decode(raw: Union[bytes, str, None]) -> Optional[str]:
    if isinstance(raw, bytes):
        return raw.decode("utf-8")
    return raw


class RedisRepository:
    """Prefixed JSON, string and list access over one redis client."""

    def __init__(self, redis_client: redis.Redis, key_prefix: str = ""):
        self.redis = redis_client
        self.key_prefix = key_prefix

    def _make_key(self, key: str) -> str:
        return f"{self.key_prefix}:{key}" if self.key_prefix else key

    def set_json(self, key: str, data: Dict[str, Any]) -> bool:
        """
        Store a document as JSON.

        Returns:
            False if the document is not serializable or Redis failed
        """
        try:
            return bool(self.redis.set(self._make_key(key), json.dumps(data)))
        except (RedisError, TypeError) as e:
            logger.error(f"Could not store document {key}: {e}")
            return False

    def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Load a JSON document.

        Returns:
            The document, or None when missing, unreadable or on Redis errors
        """
        try:
            raw = _decode(self.redis.get(self._make_key(key)))
            return None if raw is None else json.loads(raw)
        except (RedisError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Could not load document {key}: {e}")
            return None

    def set_value(self, key: str, value: str) -> bool:
        try:
            return bool(self.redis.set(self._make_key(key), value))
        except RedisError as e:
            logger.error(f"Could not store value {key}: {e}")
            return False

    def get_value(self, key: str) -> Optional[str]:
        try:
            return _decode(self.redis.get(self._make_key(key)))
        except RedisError as e:
            logger.error(f"Could not load value {key}: {e}")
            return None

    def push_json(self, key: str, data: Dict[str, Any]) -> bool:
        """Append a JSON document to the list at key."""
        try:
            self.redis.rpush(self._make_key(key), json.dumps(data))
            return True
        except (RedisError, TypeError) as e:
            logger.error(f"Could not append to list {key}: {e}")
            return False


class RedisConnectionManager:
    """
    Owns the connection pool for the process.

    A REDIS_URL wins over the individual host/port/db settings. The pool
    connects lazily on the first command.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
        url: Optional[str] = None,
        max_connections: int = 20,
    ):
        pool_options = {"max_connections": max_connections, "retry_on_timeout": True}
        if url:
            self.connection_pool = redis.ConnectionPool.from_url(url, **pool_options)
        else:
            self.connection_pool = redis.ConnectionPool(
                host=host,
                port=port,
                db=db,
                password=password,
                socket_keepalive=True,
                **pool_options,
            )
        self._client: Optional[redis.Redis] = None

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.Redis(connection_pool=self.connection_pool)
        return self._client

    def health_check(self) -> bool:
        try:
            return bool(self.client.ping())
        except RedisError:
            return False
