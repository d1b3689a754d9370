"""API key generation and hashing.

Key format: {prefix}_{uuid4}_{48_hex_chars}
- prefix: "mcp" by default
- uuid4: the key id, also the record id in the store
- secret: 24 random bytes rendered as hex

Keys are never stored in plain text. On creation:
1. Generate key: mcp_{id}_{secret}
2. Store sha256(key) as a reverse index to the id, plus the record under its id
3. Return the key to the admin once
4. "mcp_{id}" is what appears in logs
"""

from __future__ import annotations

import hashlib
import re
import secrets
import uuid

DEFAULT_PREFIX = "mcp"
SECRET_BYTES = 24

_UUID4 = r"[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}"


def api_key_regex(prefix: str = DEFAULT_PREFIX) -> re.Pattern[str]:
    """Compile the full-key regex for ``prefix``."""
    return re.compile(rf"^{re.escape(prefix)}_({_UUID4})_([0-9a-f]{{{SECRET_BYTES * 2}}})\Z")


API_KEY_REGEX = api_key_regex()


def generate_api_key(prefix: str = DEFAULT_PREFIX) -> tuple[str, str]:
    """Generate a new API key.

    Returns:
        (key_id, plaintext_key)

    Example:
        generate_api_key() -> ("0f6c...", "mcp_0f6c..._9b1e...")
    """
    key_id = str(uuid.uuid4())
    secret = secrets.token_hex(SECRET_BYTES)
    return key_id, f"{prefix}_{key_id}_{secret}"


def hash_api_key(api_key: str) -> str:
    """SHA-256 hex digest of the full plaintext key."""
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()


def has_key_prefix(api_key: str, prefix: str = DEFAULT_PREFIX) -> bool:
    """Cheap check used to skip store lookups for foreign tokens."""
    return api_key.startswith(f"{prefix}_")


def validate_api_key_format(api_key: str, prefix: str = DEFAULT_PREFIX) -> bool:
    """Return True if ``api_key`` matches the full key format."""
    pattern = API_KEY_REGEX if prefix == DEFAULT_PREFIX else api_key_regex(prefix)
    return bool(pattern.match(api_key))


def display_prefix(api_key: str, prefix: str = DEFAULT_PREFIX) -> str:
    """Extract the loggable portion of an API key.

    Example:
        display_prefix("mcp_0f6c..._9b1e...") -> "mcp_0f6c..."
    """
    match = (API_KEY_REGEX if prefix == DEFAULT_PREFIX else api_key_regex(prefix)).match(api_key)
    if not match:
        return "invalid"
    return f"{prefix}_{match.group(1)}"
