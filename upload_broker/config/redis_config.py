"""
Redis Configuration

Connection settings for the Redis-backed route table and the shared
connection manager behind it.
"""

import os
from dataclasses import dataclass
from typing import Optional

import redis

from upload_broker.domain.errors import ConfigurationError
from upload_broker.infrastructure.redis_repository import RedisConnectionManager, RedisRepository

DEFAULT_KEY_PREFIX = "upload_broker"


@dataclass(frozen=True)
class RedisConfig:
    """
    Redis connection settings.

    ``REDIS_URL`` (``redis://[:password@]host:port/db``) takes precedence
    over the individual ``REDIS_*`` variables.
    """

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    max_connections: int = 20
    key_prefix: str = DEFAULT_KEY_PREFIX

    @classmethod
    def from_env(cls) -> "RedisConfig":
        """
        Raises:
            ConfigurationError: If a numeric variable or the URL is invalid
        """
        try:
            settings = {
                "host": os.getenv("REDIS_HOST", "localhost"),
                "port": int(os.getenv("REDIS_PORT", 6379)),
                "db": int(os.getenv("REDIS_DB", 0)),
                "password": os.getenv("REDIS_PASSWORD") or None,
                "max_connections": int(os.getenv("REDIS_MAX_CONNECTIONS", 20)),
            }
            url = os.getenv("REDIS_URL")
            if url:
                parsed = redis.connection.parse_url(url)
                for key in ("host", "port", "db", "password"):
                    if parsed.get(key) is not None:
                        settings[key] = parsed[key]
        except ValueError as e:
            raise ConfigurationError(f"Invalid Redis settings: {e}",
                                     option="REDIS_URL", original_error=e) from e

        return cls(key_prefix=os.getenv("REDIS_KEY_PREFIX", DEFAULT_KEY_PREFIX), **settings)

    def create_manager(self) -> RedisConnectionManager:
        connection_kwargs = {
            "host": self.host,
            "port": self.port,
            "db": self.db,
            "max_connections": self.max_connections,
        }
        if self.password:
            connection_kwargs["password"] = self.password
        return RedisConnectionManager(**connection_kwargs)


_redis_manager: Optional[RedisConnectionManager] = None
_redis_config: Optional[RedisConfig] = None


def init_redis(config: Optional[RedisConfig] = None) -> RedisConnectionManager:
    """
    Initialize the process-wide Redis connection manager.

    Args:
        config: Redis configuration, read from the environment if None
    """
    global _redis_manager, _redis_config

    _redis_config = config if config is not None else RedisConfig.from_env()
    _redis_manager = _redis_config.create_manager()
    return _redis_manager


def get_redis_repository() -> RedisRepository:
    """
    Raises:
        RuntimeError: If Redis is not initialized
    """
    if _redis_manager is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return RedisRepository(_redis_manager.client, _redis_config.key_prefix)


def redis_health_check() -> Optional[bool]:
    """
    Returns:
        None when Redis is not in use, otherwise whether it answers PING
    """
    if _redis_manager is None:
        return None
    return _redis_manager.health_check()
