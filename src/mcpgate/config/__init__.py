"""Gateway configuration - loading and models."""

from .loader import CONFIG_PATH_ENV, ConfigLoader, resolve_env_vars
from .models import (
    AuthConfig,
    BridgeConfig,
    GatewayConfig,
    LoggingComponentsConfig,
    LoggingConfig,
    OAuthConfig,
    ServerConfig,
    StoreConfig,
)

__all__ = [
    # Config models
    "GatewayConfig",
    "ServerConfig",
    "StoreConfig",
    "AuthConfig",
    "OAuthConfig",
    "BridgeConfig",
    "LoggingConfig",
    "LoggingComponentsConfig",
    # Loader
    "CONFIG_PATH_ENV",
    "ConfigLoader",
    "resolve_env_vars",
]
