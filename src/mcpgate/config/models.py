"""Gateway configuration data models."""

from dataclasses import dataclass, field

from mcpgate.types import LogFormat, LogLevel, StoreBackend


@dataclass
class ServerConfig:
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080
    cors_origins: list[str] = field(default_factory=lambda: ["*"])


@dataclass
class StoreConfig:
    """Key-value store configuration."""

    backend: StoreBackend = StoreBackend.REDIS
    redis_url: str = "redis://localhost:6379/0"
    key_namespace: str = ""  # Prepended to every key; empty keeps the bare layout
    connect_timeout: float = 5.0
    socket_timeout: float = 5.0
    retry_attempts: int = 1  # Retries after the first failure, capped at 1


@dataclass
class OAuthConfig:
    """Identity provider (OAuth authorization-code) configuration."""

    client_id: str = ""
    client_secret: str = ""
    authorize_url: str = "https://github.com/login/oauth/authorize"
    token_url: str = "https://github.com/login/oauth/access_token"
    user_url: str = "https://api.github.com/user"
    scope: str = "read:user"
    timeout: float = 10.0

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


@dataclass
class AuthConfig:
    """API key and session configuration."""

    api_key_prefix: str = "mcp"
    default_key_expiry_days: int = 365
    default_permissions: list[str] = field(default_factory=lambda: ["all"])
    session_ttl_seconds: int = 86400
    seed_admin: str | None = None
    oauth: OAuthConfig = field(default_factory=OAuthConfig)


@dataclass
class BridgeConfig:
    """Streaming bridge configuration."""

    path: str = "/sse"
    websocket_path: str = "/ws"
    heartbeat_interval: float = 30.0
    max_lifetime: float = 600.0
    realm: str = "MCP Server"
    browser_signatures: list[str] = field(default_factory=lambda: ["Mozilla/"])


@dataclass
class LoggingComponentsConfig:
    """Per-component logging toggles."""

    bridge: bool = True
    tool: bool = True
    registry: bool = True
    auth: bool = True


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.COLORED
    show_params: bool = True
    truncate_at: int = 200
    components: LoggingComponentsConfig = field(default_factory=LoggingComponentsConfig)


@dataclass
class GatewayConfig:
    """Root configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    bridge: BridgeConfig = field(default_factory=BridgeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
