"""Browser and admin session store.

Sessions live in two independent namespaces (``session:`` and
``admin-session:``). Expiry is delegated to the store's TTL; loads never
renew a session.
"""

from __future__ import annotations

import logging
import uuid

from pydantic import ValidationError

from mcpgate.store import KVStore
from mcpgate.types import SessionKind

from .models import SessionPrincipal, SessionRecord

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = 86400


class SessionStore:
    """Mints and loads opaque session identifiers."""

    def __init__(self, kv: KVStore, ttl_seconds: int = DEFAULT_SESSION_TTL):
        self._kv = kv
        self._ttl = ttl_seconds

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    @staticmethod
    def _key(kind: SessionKind, session_id: str) -> str:
        return f"{kind.value}:{session_id}"

    async def create(self, kind: SessionKind, principal: SessionPrincipal, access_token: str) -> str:
        """Persist a new session and return its id.

        Raises:
            GatewayError: STORE_WRITE_FAILED if the session could not be persisted
        """
        session_id = str(uuid.uuid4())
        record = SessionRecord(principal=principal, access_token=access_token)
        await self._kv.put(self._key(kind, session_id), record.to_json(), ttl=self._ttl)
        logger.info(f"[AUTH] {kind.value} created for '{principal.login}'")
        return session_id

    async def load(self, kind: SessionKind, session_id: str) -> SessionRecord | None:
        if not session_id:
            return None
        raw = await self._kv.get(self._key(kind, session_id))
        if not raw:
            return None
        try:
            return SessionRecord.model_validate_json(raw)
        except ValidationError as e:
            logger.error(f"Corrupt {kind.value} record: {e}")
            return None

    async def delete(self, kind: SessionKind, session_id: str) -> None:
        await self._kv.delete(self._key(kind, session_id))
        logger.info(f"[AUTH] {kind.value} ended")
