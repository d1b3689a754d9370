"""External identity provider (OAuth authorization-code flow)."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from urllib.parse import urlencode

import httpx

from mcpgate.config import OAuthConfig
from mcpgate.errors import create_error

from .models import SessionPrincipal

logger = logging.getLogger(__name__)


class IdentityProvider(ABC):
    """Opaque collaborator that turns an authorization code into an identity."""

    @abstractmethod
    def authorization_url(self, redirect_uri: str, state: str | None = None) -> str:
        """URL the browser is redirected to for login."""

    @abstractmethod
    async def exchange(self, code: str, redirect_uri: str) -> tuple[str, SessionPrincipal]:
        """Exchange ``code`` for (access_token, principal).

        Raises:
            GatewayError: OAUTH_FAILED on any provider error
        """


class GitHubIdentityProvider(IdentityProvider):
    """GitHub OAuth app."""

    def __init__(self, config: OAuthConfig, transport: httpx.AsyncBaseTransport | None = None):
        """Initialize provider.

        Args:
            config: OAuth client settings
            transport: Optional httpx transport (tests use ``httpx.MockTransport``)
        """
        self._config = config
        self._transport = transport

    def authorization_url(self, redirect_uri: str, state: str | None = None) -> str:
        if not self._config.configured:
            raise create_error("OAUTH_NOT_CONFIGURED")
        params = {
            "client_id": self._config.client_id,
            "redirect_uri": redirect_uri,
            "scope": self._config.scope,
        }
        if state:
            params["state"] = state
        return f"{self._config.authorize_url}?{urlencode(params)}"

    async def exchange(self, code: str, redirect_uri: str) -> tuple[str, SessionPrincipal]:
        if not self._config.configured:
            raise create_error("OAUTH_NOT_CONFIGURED")

        async with httpx.AsyncClient(timeout=self._config.timeout, transport=self._transport) as client:
            try:
                token_response = await client.post(
                    self._config.token_url,
                    data={
                        "client_id": self._config.client_id,
                        "client_secret": self._config.client_secret,
                        "code": code,
                        "redirect_uri": redirect_uri,
                    },
                    headers={"Accept": "application/json"},
                )
                token_response.raise_for_status()
                token_data = token_response.json()
                access_token = token_data.get("access_token")
                if not access_token:
                    reason = token_data.get("error_description") or token_data.get("error") or "no access token"
                    raise create_error("OAUTH_FAILED", reason=reason)

                user_response = await client.get(
                    self._config.user_url,
                    headers={
                        "Authorization": f"Bearer {access_token}",
                        "Accept": "application/json",
                        "User-Agent": "mcpgate",
                    },
                )
                user_response.raise_for_status()
                user = user_response.json()
            except httpx.HTTPError as e:
                logger.error(f"[AUTH] OAuth exchange failed: {e}")
                raise create_error("OAUTH_FAILED", reason=str(e)) from e

        principal = SessionPrincipal(
            external_id=str(user["id"]),
            login=user["login"],
            display_name=user.get("name"),
            avatar_url=user.get("avatar_url"),
        )
        return access_token, principal
