"""Key-value medium interface shared by the key, session and admin stores."""

from abc import ABC, abstractmethod


class KVStore(ABC):
    """String-keyed, string-valued store with optional per-key TTL.

    Reads never raise for an unreachable medium: they return ``None`` / ``[]``
    and the caller treats the key as absent. Writes raise ``GatewayError``
    (``STORE_WRITE_FAILED``) when the value could not be persisted.
    """

    @property
    @abstractmethod
    def connected(self) -> bool:
        """Return whether the store can currently serve requests."""

    @abstractmethod
    async def connect(self) -> bool:
        """Open the underlying connection. Returns True on success."""

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying connection."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the value stored under ``key`` or None."""

    @abstractmethod
    async def put(self, key: str, value: str, ttl: int | None = None) -> None:
        """Store ``value`` under ``key``, expiring after ``ttl`` seconds if given."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key`` if present."""

    @abstractmethod
    async def list_keys(self, prefix: str) -> list[str]:
        """Return every live key starting with ``prefix``."""

    async def get_strict(self, key: str) -> str | None:
        """Like ``get`` but raise ``STORE_UNAVAILABLE`` instead of degrading to absent.

        Used before read-modify-write updates where a failed read must not be
        confused with an empty value.
        """
        return await self.get(key)
