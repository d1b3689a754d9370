"""Admin/OAuth application factory."""

from typing import TYPE_CHECKING

from fastapi import FastAPI

from mcpgate.api.errors import setup_error_handlers
from mcpgate.api.middleware import RequestIDMiddleware
from mcpgate.api.routers import admin_router, health_router, oauth_router

if TYPE_CHECKING:
    from mcpgate.auth import AdminRegistry, AuthResolver, IdentityProvider, KeyStore, SessionStore
    from mcpgate.config import GatewayConfig
    from mcpgate.store import KVStore


def create_app(
    config: "GatewayConfig",
    kv_store: "KVStore",
    key_store: "KeyStore",
    session_store: "SessionStore",
    admin_registry: "AdminRegistry",
    resolver: "AuthResolver",
    identity_provider: "IdentityProvider",
) -> FastAPI:
    """Create the FastAPI app serving admin, OAuth and health routes.

    Args:
        config: Gateway configuration
        kv_store: Backing store (health reporting)
        key_store: API key store
        session_store: Session store
        admin_registry: Admin list
        resolver: Credential resolver
        identity_provider: External OAuth provider

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="mcpgate",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    # Store dependencies in app state
    app.state.config = config
    app.state.kv_store = kv_store
    app.state.key_store = key_store
    app.state.session_store = session_store
    app.state.admin_registry = admin_registry
    app.state.resolver = resolver
    app.state.identity_provider = identity_provider

    app.add_middleware(RequestIDMiddleware)
    setup_error_handlers(app, realm=config.bridge.realm)

    app.include_router(health_router)
    app.include_router(oauth_router)
    app.include_router(admin_router)

    return app
