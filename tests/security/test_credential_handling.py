"""Credential handling tests.

Plaintext API keys and OAuth access tokens must never reach logs, and
key secrets must never be persisted.
"""

import logging

import pytest

from mcpgate.auth import AuthResolver, KeyOwner, KeyStore
from mcpgate.store import MemoryKVStore
from mcpgate.types import SessionKind


@pytest.mark.security
class TestPlaintextKeys:
    """Tests that API key secrets stay out of storage and logs."""

    @pytest.mark.asyncio
    async def test_secret_not_stored(self, key_store: KeyStore, kv: MemoryKVStore, alice_owner):
        plaintext, _ = await key_store.generate("ci", alice_owner)
        secret = plaintext.rsplit("_", 1)[1]
        for key in await kv.list_keys(""):
            assert secret not in key
            assert secret not in (await kv.get(key) or "")

    @pytest.mark.asyncio
    async def test_secret_not_logged(self, key_store: KeyStore, resolver: AuthResolver, alice_owner, caplog):
        caplog.set_level(logging.DEBUG, logger="mcpgate")
        plaintext, record = await key_store.generate("ci", alice_owner)
        await resolver.resolve(f"Bearer {plaintext}")

        secret = plaintext.rsplit("_", 1)[1]
        assert secret not in caplog.text
        assert record.id in caplog.text

    @pytest.mark.asyncio
    async def test_access_token_not_logged(self, session_store, alice_principal, caplog):
        caplog.set_level(logging.DEBUG, logger="mcpgate")
        await session_store.create(SessionKind.SESSION, alice_principal, "gho_supersecret")
        assert "gho_supersecret" not in caplog.text


@pytest.mark.security
class TestKeyOwnership:
    """Tests that admins can only revoke their own keys."""

    @pytest.mark.asyncio
    async def test_cannot_deactivate_foreign_key(self, key_store: KeyStore, alice_owner, bob_owner):
        plaintext, record = await key_store.generate("bob's", bob_owner)
        assert not await key_store.deactivate(record.id, alice_owner.id)
        assert (await key_store.validate(plaintext))[0]

    @pytest.mark.asyncio
    async def test_foreign_prefix_never_looked_up(self, kv: MemoryKVStore):
        keys = KeyStore(kv, prefix="acme")
        plaintext, _ = await KeyStore(kv).generate("ci", KeyOwner(id="1", login="a"))
        assert (await keys.validate(plaintext)) == (False, None)
