"""
Redis Repository Base Class

Hash-based storage helpers over a prefixed key space, plus the pooled
connection manager shared by every repository.
"""

import logging
from typing import Dict, Optional

import redis
from redis.exceptions import ConnectionError as RedisConnectionError

logger = logging.getLogger(__name__)


def _decode(value) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


class RedisRepository:
    """
    Base Redis repository with hash field operations.

    Unlike read-mostly caches, callers rely on writes having happened, so
    Redis errors propagate instead of being turned into False.
    """

    def __init__(self, redis_client: redis.Redis, key_prefix: str = ""):
        self.redis = redis_client
        self.key_prefix = key_prefix

    def _make_key(self, key: str) -> str:
        """Create a prefixed key for Redis storage."""
        return f"{self.key_prefix}:{key}" if self.key_prefix else key

    def set_field(self, key: str, field: str, value: str) -> None:
        self.redis.hset(self._make_key(key), field, value)

    def get_field(self, key: str, field: str) -> Optional[str]:
        value = self.redis.hget(self._make_key(key), field)
        return None if value is None else _decode(value)

    def delete_field(self, key: str, field: str) -> bool:
        """
        Returns:
            True if the field existed
        """
        return self.redis.hdel(self._make_key(key), field) > 0

    def get_all_fields(self, key: str) -> Dict[str, str]:
        raw = self.redis.hgetall(self._make_key(key))
        return {_decode(k): _decode(v) for k, v in raw.items()}

    def exists(self, key: str) -> bool:
        return self.redis.exists(self._make_key(key)) > 0


class RedisConnectionManager:
    """Manages Redis connection with connection pooling."""

    def __init__(self, host: str = 'localhost', port: int = 6379, db: int = 0,
                 max_connections: int = 20, password: Optional[str] = None,
                 decode_responses: bool = False):
        self.connection_pool = redis.ConnectionPool(
            host=host,
            port=port,
            db=db,
            password=password,
            max_connections=max_connections,
            decode_responses=decode_responses,
            retry_on_timeout=True,
            socket_keepalive=True,
        )
        self._client = None

    @property
    def client(self) -> redis.Redis:
        """Get Redis client instance with connection pooling."""
        if self._client is None:
            self._client = redis.Redis(connection_pool=self.connection_pool)
        return self._client

    def health_check(self) -> bool:
        """Check if Redis connection is healthy."""
        try:
            return bool(self.client.ping())
        except RedisConnectionError as e:
            logger.warning(f"Redis health check failed: {e}")
            return False

    def close(self):
        """Close the connection pool."""
        if self.connection_pool:
            self.connection_pool.disconnect()
