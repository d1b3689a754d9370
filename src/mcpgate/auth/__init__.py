"""Authentication - API keys, sessions, admin registry and credential resolution."""

from .admin import ADMIN_USERS_KEY, AdminRegistry
from .api_key import (
    API_KEY_REGEX,
    display_prefix,
    generate_api_key,
    has_key_prefix,
    hash_api_key,
    validate_api_key_format,
)
from .identity import GitHubIdentityProvider, IdentityProvider
from .key_store import KEY_HASH_PREFIX, KEY_INFO_PREFIX, MAX_KEY_EXPIRY_DAYS, KeyStore
from .models import (
    ANONYMOUS_PRINCIPAL,
    ApiKeyInfo,
    ApiKeyRecord,
    KeyOwner,
    Principal,
    SessionPrincipal,
    SessionRecord,
)
from .resolver import AuthResolver, extract_bearer_token
from .sessions import SessionStore

__all__ = [
    # Models
    "ANONYMOUS_PRINCIPAL",
    "ApiKeyInfo",
    "ApiKeyRecord",
    "KeyOwner",
    "Principal",
    "SessionPrincipal",
    "SessionRecord",
    # API key helpers
    "API_KEY_REGEX",
    "display_prefix",
    "generate_api_key",
    "has_key_prefix",
    "hash_api_key",
    "validate_api_key_format",
    # Stores
    "KEY_HASH_PREFIX",
    "KEY_INFO_PREFIX",
    "MAX_KEY_EXPIRY_DAYS",
    "KeyStore",
    "SessionStore",
    "ADMIN_USERS_KEY",
    "AdminRegistry",
    # Resolution
    "AuthResolver",
    "extract_bearer_token",
    # Identity provider
    "IdentityProvider",
    "GitHubIdentityProvider",
]
