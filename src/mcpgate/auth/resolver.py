"""Credential resolution.

API keys are tried before sessions so that automated clients are never
treated as interactive sessions. ``resolve`` never raises; admin checks are
separate and do raise, so "not authenticated" and "not allowed" stay distinct.
"""

from __future__ import annotations

import logging

from mcpgate.errors import create_error
from mcpgate.types import AuthKind, SessionKind

from .admin import AdminRegistry
from .api_key import has_key_prefix
from .key_store import KeyStore
from .models import ANONYMOUS_PRINCIPAL, Principal, SessionRecord
from .sessions import SessionStore

logger = logging.getLogger(__name__)


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from ``Authorization: Bearer <token>``."""
    if authorization and authorization.startswith("Bearer "):
        token = authorization[7:].strip()
        return token or None
    return None


def session_principal(record: SessionRecord) -> Principal:
    return Principal(
        auth_kind=AuthKind.SESSION,
        user_id=record.principal.external_id,
        login=record.principal.login,
        name=record.principal.display_name,
    )


class AuthResolver:
    """Turns request credentials into a ``Principal``."""

    def __init__(self, keys: KeyStore, sessions: SessionStore, admins: AdminRegistry):
        self._keys = keys
        self._sessions = sessions
        self._admins = admins

    async def resolve(
        self,
        authorization: str | None = None,
        session_id: str | None = None,
        kind: SessionKind = SessionKind.SESSION,
    ) -> Principal:
        """Resolve credentials, API key first, then session, else anonymous."""
        token = extract_bearer_token(authorization)
        if token and has_key_prefix(token, self._keys.prefix):
            valid, record = await self._keys.validate(token)
            if valid and record is not None:
                logger.info(f"[AUTH] API key {self._keys.prefix}_{record.id} accepted for '{record.created_by.login}'")
                return Principal(
                    auth_kind=AuthKind.APIKEY,
                    user_id=record.created_by.id,
                    login=record.created_by.login,
                    name=record.created_by.name,
                )

        if session_id:
            session = await self._sessions.load(kind, session_id)
            if session is not None:
                return session_principal(session)

        return ANONYMOUS_PRINCIPAL

    async def resolve_admin(self, session_id: str | None) -> tuple[Principal, SessionRecord]:
        """Resolve an admin session and re-check live admin membership.

        Raises:
            GatewayError: AUTH_REQUIRED if the admin session does not resolve,
                ADMIN_REQUIRED if the login is no longer an admin
        """
        session = await self._sessions.load(SessionKind.ADMIN_SESSION, session_id) if session_id else None
        if session is None:
            raise create_error("AUTH_REQUIRED")

        principal = session_principal(session)
        if not await self._admins.is_admin(principal.login):
            logger.warning(f"[ADMIN] Admin session for '{principal.login}' rejected: not an admin")
            raise create_error("ADMIN_REQUIRED", username=principal.login)
        return principal, session
