"""Admin router: API key management and the admin list.

Every route requires an admin session passed as ``?session=<id>``.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response

from mcpgate.api.dependencies import form_value, require_admin, required_field
from mcpgate.auth import MAX_KEY_EXPIRY_DAYS, AdminRegistry, KeyOwner, KeyStore
from mcpgate.errors import GatewayError, create_error

logger = logging.getLogger(__name__)

admin_router = APIRouter(prefix="/admin", tags=["Admin"])

DEFAULT_KEY_NAME = "New API Key"


def _keys(request: Request) -> KeyStore:
    return request.app.state.key_store


def _admins(request: Request) -> AdminRegistry:
    return request.app.state.admin_registry


@admin_router.get("")
async def dashboard(request: Request) -> Response:
    """Profile, admin list and the caller's keys."""
    try:
        admin = await require_admin(request)
    except GatewayError as e:
        if e.is_authentication_failure or e.is_authorization_failure:
            return RedirectResponse("/admin/authorize", status_code=302)
        raise

    profile = admin.session.principal.to_dict()
    keys = await _keys(request).list_for_owner(admin.principal.user_id or "")
    return JSONResponse(
        {
            "profile": profile,
            "admins": await _admins(request).list(),
            "apiKeys": [key.to_dict() for key in keys],
            "message": request.query_params.get("message"),
        }
    )


@admin_router.get("/api-keys")
async def list_api_keys(request: Request) -> dict:
    """Keys issued by the calling admin."""
    admin = await require_admin(request)
    keys = await _keys(request).list_for_owner(admin.principal.user_id or "")
    return {"apiKeys": [key.to_dict() for key in keys]}


@admin_router.api_route("/api-keys/generate", methods=["GET", "POST"])
async def generate_api_key(request: Request) -> JSONResponse:
    """Issue a key. The plaintext appears in this response only."""
    admin = await require_admin(request)

    name = await form_value(request, "name") or DEFAULT_KEY_NAME
    expires_raw = await form_value(request, "expires")
    expires_in_days = request.app.state.config.auth.default_key_expiry_days
    if expires_raw is not None:
        try:
            expires_in_days = int(expires_raw)
        except ValueError:
            expires_in_days = 0
        if not 0 < expires_in_days <= MAX_KEY_EXPIRY_DAYS:
            raise create_error(
                "FIELD_INVALID",
                field_name="expires",
                reason=f"'{expires_raw}' is not a number of days between 1 and {MAX_KEY_EXPIRY_DAYS}",
            )

    owner = KeyOwner(id=admin.principal.user_id or "", login=admin.login, name=admin.principal.name)
    plaintext, record = await _keys(request).generate(name, owner, expires_in_days=expires_in_days)

    return JSONResponse(
        {"status": "ok", "apiKey": plaintext, "key": record.public().to_dict()},
        headers={"Cache-Control": "no-store"},
    )


@admin_router.post("/api-keys/deactivate")
async def deactivate_api_key(request: Request) -> dict:
    """Revoke one of the caller's keys."""
    admin = await require_admin(request)
    key_id = await required_field(request, "key_id")

    if not await _keys(request).deactivate(key_id, admin.principal.user_id or ""):
        raise create_error("KEY_NOT_DEACTIVATED", key_id=key_id)
    return {"status": "ok", "keyId": key_id}


@admin_router.get("/users")
async def list_admins(request: Request) -> dict:
    await require_admin(request)
    return {"admins": await _admins(request).list()}


@admin_router.post("/users/add")
async def add_admin(request: Request) -> dict:
    """Grant admin to a login. Granting twice is a no-op."""
    admin = await require_admin(request)
    username = await required_field(request, "username")

    admins = _admins(request)
    if not await admins.add(username):
        raise create_error("ADMIN_UPDATE_FAILED")
    logger.info(f"[ADMIN] '{admin.login}' granted admin to '{username}'")
    return {"status": "ok", "admins": await admins.list()}


@admin_router.post("/users/remove")
async def remove_admin(request: Request) -> dict:
    """Revoke admin from a login. Self-removal and removing the last admin are refused."""
    admin = await require_admin(request)
    username = await required_field(request, "username")

    if username == admin.login:
        raise create_error("ADMIN_SELF_REMOVAL", username=username)

    admins = _admins(request)
    if not await admins.remove(username):
        raise create_error("ADMIN_LAST_MEMBER", username=username)
    logger.info(f"[ADMIN] '{admin.login}' revoked admin from '{username}'")
    return {"status": "ok", "admins": await admins.list()}
