"""API key store.

KV layout:
- ``api-key:<sha256>`` -> key id (reverse index)
- ``api-key-info:<id>`` -> record JSON

Keys are soft-revoked only; records are never deleted.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from pydantic import ValidationError

from mcpgate.errors import GatewayError
from mcpgate.store import KVStore

from .api_key import DEFAULT_PREFIX, display_prefix, generate_api_key, has_key_prefix, hash_api_key
from .models import ApiKeyInfo, ApiKeyRecord, KeyOwner, utcnow

logger = logging.getLogger(__name__)

KEY_HASH_PREFIX = "api-key:"
KEY_INFO_PREFIX = "api-key-info:"
MAX_KEY_EXPIRY_DAYS = 36500


class KeyStore:
    """Issues, validates and revokes API keys.

    Example:
        keys = KeyStore(kv)
        plaintext, record = await keys.generate("ci", owner, expires_in_days=30)
        ok, record = await keys.validate(plaintext)
    """

    def __init__(
        self,
        kv: KVStore,
        prefix: str = DEFAULT_PREFIX,
        default_permissions: list[str] | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize key store.

        Args:
            kv: Backing key-value store
            prefix: Plaintext key prefix
            default_permissions: Permissions granted when none are given
            clock: Source of "now" (tests)
        """
        self._kv = kv
        self._prefix = prefix
        self._default_permissions = default_permissions or ["all"]
        self._clock = clock

    @property
    def prefix(self) -> str:
        return self._prefix

    async def generate(
        self,
        name: str,
        owner: KeyOwner,
        permissions: list[str] | None = None,
        expires_in_days: int = 365,
    ) -> tuple[str, ApiKeyRecord]:
        """Issue a new key. The plaintext is returned here and nowhere else.

        Raises:
            GatewayError: STORE_WRITE_FAILED if the record could not be persisted
        """
        key_id, plaintext = generate_api_key(self._prefix)
        now = self._clock()
        record = ApiKeyRecord(
            id=key_id,
            secret_hash=hash_api_key(plaintext),
            created_at=now,
            expires_at=now + timedelta(days=expires_in_days),
            created_by=owner,
            name=name,
            permissions=list(permissions or self._default_permissions),
        )

        await self._kv.put(f"{KEY_INFO_PREFIX}{key_id}", record.to_json())
        await self._kv.put(f"{KEY_HASH_PREFIX}{record.secret_hash}", key_id)

        logger.info(
            f"[AUTH] API key '{name}' issued by '{owner.login}': {display_prefix(plaintext, self._prefix)}"
        )
        return plaintext, record

    async def validate(self, plaintext: str) -> tuple[bool, ApiKeyRecord | None]:
        """Check a presented key.

        Returns:
            (True, record) for an active, unexpired key; (False, None) otherwise
        """
        if not has_key_prefix(plaintext, self._prefix):
            return False, None

        key_id = await self._kv.get(f"{KEY_HASH_PREFIX}{hash_api_key(plaintext)}")
        if not key_id:
            return False, None

        record = await self._load(key_id)
        if record is None:
            return False, None

        now = self._clock()
        if not record.is_active:
            logger.info(f"[AUTH] Rejected revoked key {self._prefix}_{key_id}")
            return False, None
        if record.is_expired(now):
            logger.info(f"[AUTH] Rejected expired key {self._prefix}_{key_id}")
            return False, None

        record.last_accessed = now
        try:
            await self._kv.put(f"{KEY_INFO_PREFIX}{key_id}", record.to_json())
        except GatewayError as e:
            logger.warning(f"Failed to update last_accessed for key {key_id}: {e}")

        return True, record

    async def list_for_owner(self, user_id: str) -> list[ApiKeyInfo]:
        """List keys issued by ``user_id``, oldest first, without hashes."""
        records: list[ApiKeyInfo] = []
        for key in await self._kv.list_keys(KEY_INFO_PREFIX):
            record = await self._load(key[len(KEY_INFO_PREFIX) :])
            if record is not None and record.created_by.id == user_id:
                records.append(record.public())
        records.sort(key=lambda r: r.created_at)
        return records

    async def deactivate(self, key_id: str, requester_id: str) -> bool:
        """Revoke a key owned by ``requester_id``.

        Returns:
            False if the key is absent or owned by someone else
        """
        record = await self._load(key_id)
        if record is None or record.created_by.id != requester_id:
            logger.warning(f"[AUTH] Deactivation of key {key_id} by '{requester_id}' refused")
            return False

        record.is_active = False
        await self._kv.put(f"{KEY_INFO_PREFIX}{key_id}", record.to_json())
        logger.info(f"[AUTH] API key {self._prefix}_{key_id} deactivated by '{requester_id}'")
        return True

    async def get_info(self, key_id: str) -> ApiKeyInfo | None:
        """Get a single record without its hash."""
        record = await self._load(key_id)
        return record.public() if record else None

    async def _load(self, key_id: str) -> ApiKeyRecord | None:
        raw = await self._kv.get(f"{KEY_INFO_PREFIX}{key_id}")
        if not raw:
            return None
        try:
            return ApiKeyRecord.model_validate_json(raw)
        except ValidationError as e:
            logger.error(f"Corrupt API key record {key_id}: {e}")
            return None
