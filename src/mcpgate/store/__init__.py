"""Key-value storage backends."""

from mcpgate.config import StoreConfig
from mcpgate.types import StoreBackend

from .base import KVStore
from .memory import MemoryKVStore
from .redis import RedisKVStore, RedisKVStoreOptions


def create_kv_store(config: StoreConfig) -> KVStore:
    """Build the store selected by ``config.backend``."""
    if config.backend == StoreBackend.MEMORY:
        return MemoryKVStore()
    return RedisKVStore(
        RedisKVStoreOptions(
            redis_url=config.redis_url,
            key_namespace=config.key_namespace,
            connect_timeout=config.connect_timeout,
            socket_timeout=config.socket_timeout,
            retry_attempts=config.retry_attempts,
        )
    )


__all__ = [
    "KVStore",
    "MemoryKVStore",
    "RedisKVStore",
    "RedisKVStoreOptions",
    "create_kv_store",
]
