"""Persisted auth records and the resolved principal.

Records are stored as camelCase JSON so the KV layout is shared with other
clients of the same store.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from mcpgate.types import AuthKind


def utcnow() -> datetime:
    return datetime.now(UTC)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class KeyOwner(_CamelModel):
    """Admin who issued a key."""

    id: str
    login: str
    name: str | None = None


class ApiKeyInfo(_CamelModel):
    """API key record as exposed outside the key store (no hash)."""

    id: str
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime
    created_by: KeyOwner
    name: str
    permissions: list[str] = Field(default_factory=lambda: ["all"])
    is_active: bool = True
    last_accessed: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires_at < (now or utcnow())


class ApiKeyRecord(ApiKeyInfo):
    """API key record as persisted."""

    secret_hash: str

    def public(self) -> ApiKeyInfo:
        """Strip the hash."""
        return ApiKeyInfo.model_validate(self.model_dump(exclude={"secret_hash"}))


class SessionPrincipal(_CamelModel):
    """Identity returned by the external identity provider."""

    external_id: str
    login: str
    display_name: str | None = None
    avatar_url: str | None = None


class SessionRecord(_CamelModel):
    """Session payload stored under ``session:<id>`` / ``admin-session:<id>``."""

    principal: SessionPrincipal
    access_token: str


@dataclass(frozen=True)
class Principal:
    """Identity attached to a connection or request. Derived, never persisted."""

    auth_kind: AuthKind
    user_id: str | None = None
    login: str | None = None
    name: str | None = None

    @property
    def authenticated(self) -> bool:
        return self.auth_kind != AuthKind.NONE

    def to_dict(self) -> dict[str, Any]:
        return {
            "authKind": self.auth_kind.value,
            "userId": self.user_id,
            "login": self.login,
            "name": self.name,
        }


ANONYMOUS_PRINCIPAL = Principal(auth_kind=AuthKind.NONE)
