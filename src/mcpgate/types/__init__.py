"""Shared types for mcpgate.

Import from here rather than submodules:
    from mcpgate.types import AuthKind, SessionKind, LogLevel
"""

from .enums import (
    AuthKind,
    ConnectionState,
    LogFormat,
    LogLevel,
    SessionKind,
    StoreBackend,
)
from .validation import ValidationIssue, ValidationResult

__all__ = [
    # Enums
    "AuthKind",
    "ConnectionState",
    "LogFormat",
    "LogLevel",
    "SessionKind",
    "StoreBackend",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]
