"""
Redis Configuration

Creates the pooled Redis connection manager from application settings.
"""

from typing import Optional

from soundpack.config.settings import AppSettings
from soundpack.infrastructure.redis_repository import RedisConnectionManager, RedisRepository

# Global Redis connection manager
_redis_manager: Optional[RedisConnectionManager] = None


def init_redis(settings: AppSettings) -> RedisConnectionManager:
    """
    Initialize Redis connection manager.

    REDIS_URL takes precedence over the individual host/port/db settings.
    No connection is opened until the first command.

    Args:
        settings: Application settings

    Returns:
        RedisConnectionManager instance
    """
    global _redis_manager

    _redis_manager = RedisConnectionManager(
        host=settings.redis_host,
        port=settings.redis_port,
        db=settings.redis_db,
        password=settings.redis_password,
        url=settings.redis_url,
    )
    return _redis_manager


def get_redis_repository(key_prefix: str = "") -> RedisRepository:
    """
    Get Redis repository with optional key prefix.

    Raises:
        RuntimeError: If Redis is not initialized
    """
    if _redis_manager is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")

    return RedisRepository(_redis_manager.client, key_prefix)


def redis_health_check() -> bool:
    """
    Check Redis connection health.

    Returns:
        True if Redis is healthy, False otherwise
    """
    if _redis_manager is None:
        return False

    return _redis_manager.health_check()
