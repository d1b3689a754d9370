"""Admin registry.

The admin set is a JSON list under ``admin_users``. It must never become
empty. Mutations are read-modify-write without transactions, so concurrent
edits are last-write-wins; the current list is always re-read right before a
removal is decided.
"""

from __future__ import annotations

import json
import logging

from mcpgate.store import KVStore

logger = logging.getLogger(__name__)

ADMIN_USERS_KEY = "admin_users"


def _parse(raw: str | None) -> list[str]:
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.error(f"Corrupt admin list: {e}")
        return []
    if not isinstance(data, list):
        return []
    return [str(u) for u in data]


class AdminRegistry:
    """Set of admin usernames."""

    def __init__(self, kv: KVStore):
        self._kv = kv

    async def list(self) -> list[str]:
        """Admins in insertion order. A failed read yields an empty list."""
        return _parse(await self._kv.get(ADMIN_USERS_KEY))

    async def is_admin(self, username: str | None) -> bool:
        if not username:
            return False
        return username in await self.list()

    async def _current(self) -> list[str]:
        return _parse(await self._kv.get_strict(ADMIN_USERS_KEY))

    async def _save(self, admins: list[str]) -> None:
        await self._kv.put(ADMIN_USERS_KEY, json.dumps(admins))

    async def add(self, username: str) -> bool:
        """Add an admin. Adding an existing admin is a successful no-op.

        Raises:
            GatewayError: if the store cannot be read or written
        """
        admins = await self._current()
        if username in admins:
            return True
        admins.append(username)
        await self._save(admins)
        logger.info(f"[ADMIN] '{username}' added to admins")
        return True

    async def remove(self, username: str) -> bool:
        """Remove an admin.

        Returns:
            True if removed or already absent, False if it would empty the set

        Raises:
            GatewayError: if the store cannot be read or written
        """
        admins = await self._current()
        if username not in admins:
            return True
        if len(admins) <= 1:
            logger.warning(f"[ADMIN] Refused to remove last admin '{username}'")
            return False
        admins.remove(username)
        await self._save(admins)
        logger.info(f"[ADMIN] '{username}' removed from admins")
        return True

    async def initialize_if_empty(self, seed_username: str) -> bool:
        """Write ``[seed_username]`` unless an admin list already exists.

        Safe on every boot. Returns True if the seed was written.
        """
        raw = await self._kv.get_strict(ADMIN_USERS_KEY)
        if raw is not None and _parse(raw):
            return False
        await self._save([seed_username])
        logger.info(f"[ADMIN] Admin list initialized with '{seed_username}'")
        return True
