"""Gateway error types."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error source categories."""

    AUTHENTICATION = "AUTHENTICATION"  # No usable credential
    AUTHORIZATION = "AUTHORIZATION"  # Credential valid, role missing
    VALIDATION = "VALIDATION"
    PROTOCOL = "PROTOCOL"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    STORE = "STORE"
    CONFIG = "CONFIG"
    SYSTEM = "SYSTEM"


@dataclass
class GatewayError(Exception):
    """Structured error with context. Base exception for all gateway errors."""

    # Identity
    code: str  # e.g., "AUTH_REQUIRED"
    category: ErrorCategory

    # Messages
    message: str  # Human-readable summary
    detail: str | None = None  # Extended explanation
    suggestion: str | None = None  # Actionable fix

    # Context
    retryable: bool = False
    http_status: int = 500  # For HTTP responses
    field_name: str | None = None  # Which form field was rejected
    username: str | None = None  # Which login the failure concerns

    # Error chain
    cause: "GatewayError | None" = None

    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        """Set Exception message."""
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses.

        Returns:
            Dictionary representation of the error
        """
        return {
            "code": self.code,
            "category": self.category.value,
            "message": self.message,
            "detail": self.detail,
            "suggestion": self.suggestion,
            "retryable": self.retryable,
            "field": self.field_name,
            "timestamp": self.timestamp.isoformat(),
            "cause": self.cause.to_dict() if self.cause else None,
        }

    @property
    def is_authentication_failure(self) -> bool:
        """True when the caller could not be identified at all."""
        return self.category == ErrorCategory.AUTHENTICATION

    @property
    def is_authorization_failure(self) -> bool:
        """True when the caller is known but lacks the role."""
        return self.category == ErrorCategory.AUTHORIZATION


@dataclass
class ErrorTemplate:
    """Template for creating errors."""

    code: str
    category: ErrorCategory
    message_template: str  # "Field '{field_name}' is required"
    detail_template: str | None = None
    suggestion_template: str | None = None
    default_retryable: bool = False
    default_http_status: int = 500
