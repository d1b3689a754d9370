"""Shared enumerations for mcpgate."""

from enum import Enum


class LogLevel(str, Enum):
    """Log verbosity level."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class LogFormat(str, Enum):
    """Log output format."""

    COLORED = "colored"
    JSON = "json"


class StoreBackend(str, Enum):
    """Backing key-value medium."""

    REDIS = "redis"
    MEMORY = "memory"


class AuthKind(str, Enum):
    """How a connection's principal was authenticated."""

    APIKEY = "apikey"
    SESSION = "session"
    NONE = "none"


class SessionKind(str, Enum):
    """Session namespace. The value is the KV key prefix."""

    SESSION = "session"
    ADMIN_SESSION = "admin-session"


class ConnectionState(str, Enum):
    """Streaming connection lifecycle state."""

    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    UNAUTHORIZED = "unauthorized"
    STREAMING = "streaming"
    CLOSED = "closed"
