"""Gateway application - wires every component together."""

import logging
import sys
from dataclasses import asdict
from typing import TextIO

from mcpgate.api import create_app
from mcpgate.auth import (
    AdminRegistry,
    AuthResolver,
    GitHubIdentityProvider,
    IdentityProvider,
    KeyStore,
    SessionStore,
)
from mcpgate.bridge import HTTPTransport
from mcpgate.config import ConfigLoader, GatewayConfig
from mcpgate.errors import GatewayError
from mcpgate.logging import GatewayLogger, LogConfig, configure_logging
from mcpgate.registry import ToolRegistry, register_builtin_tools
from mcpgate.store import KVStore, create_kv_store

logger = logging.getLogger(__name__)


class GatewayApplication:
    """
    Gateway orchestrator.

    Initialization sequence:

    1. Config loading
    2. Logger setup
    3. KV store connection
    4. Key and session stores
    5. Admin registry (seeded on first boot)
    6. Tool registry with built-in tools
    7. Auth resolver
    8. Identity provider
    9. Admin/OAuth app
    10. Streaming HTTP transport
    """

    def __init__(
        self,
        config_path: str | None = None,
        log_output: TextIO | None = None,
        config: GatewayConfig | None = None,
        kv_store: KVStore | None = None,
        identity_provider: IdentityProvider | None = None,
    ):
        """Initialize application.

        Args:
            config_path: Path to config file (optional)
            log_output: Output stream for component logs (default: sys.stdout)
            config: Pre-built configuration, bypasses the loader
            kv_store: Pre-built store, bypasses ``store.backend``
            identity_provider: Pre-built identity provider
        """
        self._config_path = config_path
        self._log_output = log_output or sys.stdout
        self._config_override = config
        self._kv_override = kv_store
        self._identity_override = identity_provider
        self._initialized = False

        self.config: GatewayConfig | None = None
        self.logger: GatewayLogger | None = None
        self.kv_store: KVStore | None = None
        self.key_store: KeyStore | None = None
        self.session_store: SessionStore | None = None
        self.admin_registry: AdminRegistry | None = None
        self.tool_registry: ToolRegistry | None = None
        self.resolver: AuthResolver | None = None
        self.identity_provider: IdentityProvider | None = None
        self.transport: HTTPTransport | None = None

    async def initialize(self) -> None:
        """Initialize all components."""
        if self._initialized:
            return

        # 1. Config
        self.config = self._config_override or ConfigLoader().load(self._config_path)
        config = self.config

        # 2. Logging
        configure_logging(config.logging.level, config.logging.format)
        self.logger = GatewayLogger(
            LogConfig(
                level=config.logging.level,
                format=config.logging.format,
                show_params=config.logging.show_params,
                truncate_at=config.logging.truncate_at,
                components=asdict(config.logging.components),
                output=self._log_output,
            )
        )

        # 3. KV store
        self.kv_store = self._kv_override or create_kv_store(config.store)
        if not await self.kv_store.connect():
            logger.error("Key-value store unavailable; reads will be treated as absent")

        # 4. Key and session stores
        self.key_store = KeyStore(
            self.kv_store,
            prefix=config.auth.api_key_prefix,
            default_permissions=config.auth.default_permissions,
        )
        self.session_store = SessionStore(self.kv_store, ttl_seconds=config.auth.session_ttl_seconds)

        # 5. Admin registry
        self.admin_registry = AdminRegistry(self.kv_store)
        if config.auth.seed_admin:
            try:
                await self.admin_registry.initialize_if_empty(config.auth.seed_admin)
            except GatewayError as e:
                logger.error(f"[ADMIN] Could not seed admin list: {e.message}")

        # 6. Tool registry
        self.tool_registry = ToolRegistry(logger=self.logger)
        register_builtin_tools(self.tool_registry)

        # 7. Auth resolver
        self.resolver = AuthResolver(self.key_store, self.session_store, self.admin_registry)

        # 8. Identity provider
        self.identity_provider = self._identity_override or GitHubIdentityProvider(config.auth.oauth)
        if not config.auth.oauth.configured and self._identity_override is None:
            logger.warning("[AUTH] OAuth client not configured; browser login is disabled")

        # 9. Admin/OAuth app
        rest_app = create_app(
            config,
            kv_store=self.kv_store,
            key_store=self.key_store,
            session_store=self.session_store,
            admin_registry=self.admin_registry,
            resolver=self.resolver,
            identity_provider=self.identity_provider,
        )

        # 10. Streaming transport
        self.transport = HTTPTransport(
            self.tool_registry,
            self.resolver,
            config=config.bridge,
            logger=self.logger,
            cors_origins=config.server.cors_origins,
            rest_app=rest_app,
        )

        self._initialized = True

    @property
    def app(self):
        """ASGI application (after ``initialize``)."""
        if self.transport is None:
            raise RuntimeError("Application not initialized")
        return self.transport.app

    async def shutdown(self) -> None:
        """Close open streams and the store."""
        if not self._initialized:
            return

        if self.transport:
            await self.transport.close_all()
        if self.kv_store:
            await self.kv_store.close()

        self._initialized = False

    async def start(self) -> None:
        """Initialize (if needed) and serve until stopped."""
        import uvicorn

        if not self._initialized:
            await self.initialize()

        server = uvicorn.Server(
            uvicorn.Config(
                self.app,
                host=self.config.server.host,
                port=self.config.server.port,
                log_level="info",
            )
        )
        try:
            await server.serve()
        finally:
            await self.shutdown()
