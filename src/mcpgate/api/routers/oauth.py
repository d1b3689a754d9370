"""OAuth router: login redirects, callback and logout."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse

from mcpgate.api.dependencies import callback_url
from mcpgate.auth import AdminRegistry, IdentityProvider, SessionStore
from mcpgate.errors import create_error
from mcpgate.types import SessionKind

logger = logging.getLogger(__name__)

oauth_router = APIRouter(tags=["OAuth"])

ADMIN_STATE = "admin"


def _identity(request: Request) -> IdentityProvider:
    return request.app.state.identity_provider


def _sessions(request: Request) -> SessionStore:
    return request.app.state.session_store


@oauth_router.get("/authorize")
async def authorize(request: Request) -> RedirectResponse:
    """Send the browser to the identity provider."""
    return RedirectResponse(_identity(request).authorization_url(callback_url(request)), status_code=302)


@oauth_router.get("/admin/authorize")
async def admin_authorize(request: Request) -> RedirectResponse:
    """Like ``/authorize`` but the callback mints an admin session."""
    url = _identity(request).authorization_url(callback_url(request), state=ADMIN_STATE)
    return RedirectResponse(url, status_code=302)


@oauth_router.get("/callback")
async def callback(request: Request) -> RedirectResponse:
    """Exchange the authorization code and start a session.

    ``state=admin`` logins must already be in the admin list; they receive an
    admin session and land on the dashboard. Everyone else gets an ordinary
    session and lands on the stream endpoint.
    """
    code = request.query_params.get("code")
    if not code:
        raise create_error("FIELD_REQUIRED", field_name="code")

    access_token, principal = await _identity(request).exchange(code, callback_url(request))
    sessions = _sessions(request)

    if request.query_params.get("state") == ADMIN_STATE:
        admins: AdminRegistry = request.app.state.admin_registry
        if not await admins.is_admin(principal.login):
            logger.warning(f"[ADMIN] Admin login refused for '{principal.login}'")
            raise create_error("ADMIN_REQUIRED", username=principal.login)
        session_id = await sessions.create(SessionKind.ADMIN_SESSION, principal, access_token)
        return RedirectResponse(f"/admin?session={session_id}", status_code=302)

    session_id = await sessions.create(SessionKind.SESSION, principal, access_token)
    stream_path = request.app.state.config.bridge.path
    return RedirectResponse(f"{stream_path}?session={session_id}", status_code=302)


@oauth_router.post("/logout")
async def logout(request: Request) -> dict:
    session_id = request.query_params.get("session")
    if session_id:
        await _sessions(request).delete(SessionKind.SESSION, session_id)
    return {"status": "ok"}


@oauth_router.post("/admin/logout")
async def admin_logout(request: Request) -> dict:
    session_id = request.query_params.get("session")
    if session_id:
        await _sessions(request).delete(SessionKind.ADMIN_SESSION, session_id)
    return {"status": "ok"}
