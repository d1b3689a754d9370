"""Redis-backed key-value store.

Values are stored as plain strings (``decode_responses=True``). TTLs use
``SET ... EX`` and prefix listing uses ``SCAN MATCH`` so large keyspaces are
never blocked on ``KEYS``.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from mcpgate.errors import create_error

from .base import KVStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RedisKVStoreOptions:
    """Options for RedisKVStore."""

    redis_url: str = "redis://localhost:6379/0"
    key_namespace: str = ""
    connect_timeout: float = 5.0
    socket_timeout: float = 5.0
    retry_attempts: int = 1
    scan_count: int = 100


class RedisKVStore(KVStore):
    """Redis implementation of ``KVStore``.

    Transient connection and timeout errors are retried once. After that a
    read degrades to absent and a write raises ``STORE_WRITE_FAILED``.

    Example:
        store = RedisKVStore(RedisKVStoreOptions(redis_url="redis://cache:6379/0"))
        if await store.connect():
            await store.put("admin_users", '["alice"]')
    """

    def __init__(self, options: RedisKVStoreOptions | None = None, client: Any | None = None):
        """Initialize the Redis store.

        Args:
            options: Connection options
            client: Pre-built ``redis.asyncio.Redis`` client (tests)
        """
        self._options = options or RedisKVStoreOptions()
        self._client: Any | None = client  # redis.asyncio.Redis
        self._connected = False

    @property
    def connected(self) -> bool:
        """Return whether the store is connected to Redis."""
        return self._connected

    async def connect(self) -> bool:
        """Connect to Redis.

        Returns:
            True if connection successful, False otherwise.
        """
        if self._connected:
            return True

        import redis.asyncio as redis
        from redis.exceptions import RedisError

        try:
            if self._client is None:
                self._client = redis.from_url(
                    self._options.redis_url,
                    socket_connect_timeout=self._options.connect_timeout,
                    socket_timeout=self._options.socket_timeout,
                    decode_responses=True,
                )

            await self._client.ping()
            self._connected = True
            logger.info(f"Connected to Redis at {self._sanitize_url(self._options.redis_url)}")
            return True

        except (RedisError, OSError) as e:
            logger.error(f"Failed to connect to Redis: {e}")
            self._connected = False
            return False

    async def close(self) -> None:
        """Disconnect from Redis."""
        if self._client:
            from redis.exceptions import RedisError

            try:
                await self._client.aclose()
            except (RedisError, OSError) as e:
                logger.warning(f"Error closing Redis connection: {e}")
            finally:
                self._client = None
                self._connected = False
                logger.info("Disconnected from Redis")

    def _key(self, key: str) -> str:
        if self._options.key_namespace:
            return f"{self._options.key_namespace}:{key}"
        return key

    def _strip(self, key: str) -> str:
        if self._options.key_namespace:
            return key[len(self._options.key_namespace) + 1 :]
        return key

    async def _call(self, operation: str, fn: Callable[[], Awaitable[T]]) -> T:
        """Run a Redis command, retrying once on transient failures."""
        from redis.exceptions import ConnectionError as RedisConnectionError
        from redis.exceptions import TimeoutError as RedisTimeoutError

        if self._client is None:
            raise RedisConnectionError("not connected to Redis")

        attempts = 1 + max(0, min(self._options.retry_attempts, 1))
        for attempt in range(attempts):
            try:
                return await fn()
            except (RedisConnectionError, RedisTimeoutError) as e:
                if attempt + 1 >= attempts:
                    raise
                logger.warning(f"Redis {operation} failed ({e}), retrying")
        raise AssertionError("unreachable")

    async def get(self, key: str) -> str | None:
        from redis.exceptions import RedisError

        try:
            return await self._call("GET", lambda: self._client.get(self._key(key)))
        except RedisError as e:
            logger.error(f"Failed to read '{key}' from Redis: {e}")
            return None

    async def get_strict(self, key: str) -> str | None:
        from redis.exceptions import RedisError

        try:
            return await self._call("GET", lambda: self._client.get(self._key(key)))
        except RedisError as e:
            logger.error(f"Failed to read '{key}' from Redis: {e}")
            raise create_error("STORE_UNAVAILABLE", detail=str(e)) from e

    async def put(self, key: str, value: str, ttl: int | None = None) -> None:
        from redis.exceptions import RedisError

        try:
            await self._call("SET", lambda: self._client.set(self._key(key), value, ex=ttl))
        except RedisError as e:
            logger.error(f"Failed to write '{key}' to Redis: {e}")
            raise create_error("STORE_WRITE_FAILED", key=key, detail=str(e)) from e

    async def delete(self, key: str) -> None:
        from redis.exceptions import RedisError

        try:
            await self._call("DEL", lambda: self._client.delete(self._key(key)))
        except RedisError as e:
            logger.error(f"Failed to delete '{key}' from Redis: {e}")
            raise create_error("STORE_WRITE_FAILED", key=key, detail=str(e)) from e

    async def list_keys(self, prefix: str) -> list[str]:
        from redis.exceptions import RedisError

        pattern = self._key(prefix) + "*"

        async def scan() -> list[str]:
            return [
                k async for k in self._client.scan_iter(match=pattern, count=self._options.scan_count)
            ]

        try:
            keys = await self._call("SCAN", scan)
        except RedisError as e:
            logger.error(f"Failed to list '{prefix}*' in Redis: {e}")
            return []
        return sorted(self._strip(k) for k in keys)

    def _sanitize_url(self, url: str) -> str:
        """Remove password from URL for logging."""
        if "@" in url:
            parts = url.split("@")
            prefix = parts[0].rsplit(":", 1)[0]
            return f"{prefix}:***@{parts[1]}"
        return url
