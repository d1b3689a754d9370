"""Unit tests for the API key store."""

import json

import pytest

from mcpgate.auth import KEY_HASH_PREFIX, KEY_INFO_PREFIX, KeyStore, hash_api_key
from mcpgate.errors import GatewayError, create_error
from mcpgate.store import MemoryKVStore


class FailingWritesKVStore(MemoryKVStore):
    """Memory store whose writes fail once armed."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_writes = False

    async def put(self, key, value, ttl=None):
        if self.fail_writes:
            raise create_error("STORE_WRITE_FAILED", key=key)
        await super().put(key, value, ttl)


@pytest.mark.unit
class TestGenerate:
    """Tests for KeyStore.generate."""

    @pytest.mark.asyncio
    async def test_persists_record_and_reverse_index(self, key_store: KeyStore, kv: MemoryKVStore, alice_owner):
        """Test record is stored under its id and the hash points back to it."""
        plaintext, record = await key_store.generate("ci", alice_owner, expires_in_days=30)

        assert await kv.get(f"{KEY_HASH_PREFIX}{hash_api_key(plaintext)}") == record.id
        stored = json.loads(await kv.get(f"{KEY_INFO_PREFIX}{record.id}"))
        assert stored["secretHash"] == record.secret_hash
        assert stored["createdBy"]["id"] == alice_owner.id

    @pytest.mark.asyncio
    async def test_plaintext_never_persisted(self, key_store: KeyStore, kv: MemoryKVStore, alice_owner):
        """Test the secret does not appear anywhere in the store."""
        plaintext, _ = await key_store.generate("ci", alice_owner)
        secret = plaintext.split("_")[2]
        for key in await kv.list_keys(""):
            assert secret not in key
            assert secret not in await kv.get(key)

    @pytest.mark.asyncio
    async def test_expiry_and_defaults(self, key_store: KeyStore, alice_owner, wall_clock):
        _, record = await key_store.generate("ci", alice_owner, expires_in_days=30)
        assert (record.expires_at - record.created_at).days == 30
        assert record.created_at == wall_clock.now
        assert record.permissions == ["all"]
        assert record.is_active

    @pytest.mark.asyncio
    async def test_id_embedded_in_plaintext(self, key_store: KeyStore, alice_owner):
        plaintext, record = await key_store.generate("ci", alice_owner)
        assert plaintext.startswith(f"mcp_{record.id}_")


@pytest.mark.unit
class TestValidate:
    """Tests for KeyStore.validate."""

    @pytest.mark.asyncio
    async def test_round_trip(self, key_store: KeyStore, alice_owner):
        plaintext, record = await key_store.generate("ci", alice_owner)
        valid, found = await key_store.validate(plaintext)
        assert valid
        assert found.id == record.id

    @pytest.mark.asyncio
    async def test_updates_last_accessed(self, key_store: KeyStore, alice_owner, wall_clock):
        plaintext, record = await key_store.generate("ci", alice_owner)
        wall_clock.advance(hours=2)
        await key_store.validate(plaintext)
        info = await key_store.get_info(record.id)
        assert info.last_accessed == wall_clock.now

    @pytest.mark.asyncio
    async def test_foreign_prefix_short_circuits(self, alice_owner):
        """Test tokens without the prefix never reach the store."""
        kv = MemoryKVStore()
        store = KeyStore(kv)
        calls = []
        original_get = kv.get

        async def spying_get(key):
            calls.append(key)
            return await original_get(key)

        kv.get = spying_get
        assert await store.validate("ghp_notakey") == (False, None)
        assert calls == []

    @pytest.mark.asyncio
    async def test_unknown_key(self, key_store: KeyStore):
        plaintext = "mcp_00000000-0000-4000-8000-000000000000_" + "0" * 48
        assert await key_store.validate(plaintext) == (False, None)

    @pytest.mark.asyncio
    async def test_tampered_secret(self, key_store: KeyStore, alice_owner):
        plaintext, _ = await key_store.generate("ci", alice_owner)
        tampered = plaintext[:-1] + ("0" if plaintext[-1] != "0" else "1")
        valid, _ = await key_store.validate(tampered)
        assert not valid

    @pytest.mark.asyncio
    async def test_expired_key_rejected(self, key_store: KeyStore, alice_owner, wall_clock):
        plaintext, _ = await key_store.generate("ci", alice_owner, expires_in_days=1)
        wall_clock.advance(days=1, seconds=1)
        assert await key_store.validate(plaintext) == (False, None)

    @pytest.mark.asyncio
    async def test_dangling_reverse_index(self, key_store: KeyStore, kv: MemoryKVStore, alice_owner):
        """Test a hash pointing at a missing record fails validation."""
        plaintext, record = await key_store.generate("ci", alice_owner)
        await kv.delete(f"{KEY_INFO_PREFIX}{record.id}")
        assert await key_store.validate(plaintext) == (False, None)

    @pytest.mark.asyncio
    async def test_last_accessed_write_failure_is_ignored(self, alice_owner, wall_clock):
        """Test validation succeeds even when the access timestamp cannot be saved."""
        kv = FailingWritesKVStore()
        store = KeyStore(kv, clock=wall_clock)
        plaintext, record = await store.generate("ci", alice_owner)

        kv.fail_writes = True
        valid, found = await store.validate(plaintext)
        assert valid
        assert found.id == record.id


@pytest.mark.unit
class TestListForOwner:
    """Tests for KeyStore.list_for_owner."""

    @pytest.mark.asyncio
    async def test_lists_only_owned_keys(self, key_store: KeyStore, alice_owner, bob_owner, wall_clock):
        _, first = await key_store.generate("one", alice_owner)
        wall_clock.advance(seconds=1)
        _, second = await key_store.generate("two", alice_owner)
        await key_store.generate("bobs", bob_owner)

        keys = await key_store.list_for_owner(alice_owner.id)
        assert [k.id for k in keys] == [first.id, second.id]

    @pytest.mark.asyncio
    async def test_hash_never_exposed(self, key_store: KeyStore, alice_owner):
        await key_store.generate("ci", alice_owner)
        for info in await key_store.list_for_owner(alice_owner.id):
            assert not hasattr(info, "secret_hash")
            assert "secretHash" not in info.to_dict()

    @pytest.mark.asyncio
    async def test_includes_revoked_keys(self, key_store: KeyStore, alice_owner):
        _, record = await key_store.generate("ci", alice_owner)
        await key_store.deactivate(record.id, alice_owner.id)
        keys = await key_store.list_for_owner(alice_owner.id)
        assert [k.is_active for k in keys] == [False]


@pytest.mark.unit
class TestDeactivate:
    """Tests for KeyStore.deactivate."""

    @pytest.mark.asyncio
    async def test_owner_can_revoke(self, key_store: KeyStore, alice_owner):
        plaintext, record = await key_store.generate("ci", alice_owner)
        assert await key_store.deactivate(record.id, alice_owner.id)
        assert await key_store.validate(plaintext) == (False, None)

    @pytest.mark.asyncio
    async def test_record_kept_after_revoke(self, key_store: KeyStore, kv: MemoryKVStore, alice_owner):
        """Test soft revoke: the record and index stay in the store."""
        plaintext, record = await key_store.generate("ci", alice_owner)
        await key_store.deactivate(record.id, alice_owner.id)
        assert await kv.get(f"{KEY_INFO_PREFIX}{record.id}") is not None
        assert await kv.get(f"{KEY_HASH_PREFIX}{hash_api_key(plaintext)}") == record.id

    @pytest.mark.asyncio
    async def test_other_user_cannot_revoke(self, key_store: KeyStore, kv: MemoryKVStore, alice_owner, bob_owner):
        plaintext, record = await key_store.generate("ci", alice_owner)
        before = await kv.get(f"{KEY_INFO_PREFIX}{record.id}")

        assert not await key_store.deactivate(record.id, bob_owner.id)
        assert await kv.get(f"{KEY_INFO_PREFIX}{record.id}") == before
        valid, _ = await key_store.validate(plaintext)
        assert valid

    @pytest.mark.asyncio
    async def test_absent_key(self, key_store: KeyStore, alice_owner):
        assert not await key_store.deactivate("missing", alice_owner.id)

    @pytest.mark.asyncio
    async def test_write_failure_propagates(self, alice_owner):
        kv = FailingWritesKVStore()
        store = KeyStore(kv)
        _, record = await store.generate("ci", alice_owner)
        kv.fail_writes = True
        with pytest.raises(GatewayError) as exc_info:
            await store.deactivate(record.id, alice_owner.id)
        assert exc_info.value.code == "STORE_WRITE_FAILED"


@pytest.mark.unit
class TestGetInfo:
    """Tests for KeyStore.get_info."""

    @pytest.mark.asyncio
    async def test_returns_public_record(self, key_store: KeyStore, alice_owner):
        _, record = await key_store.generate("ci", alice_owner)
        info = await key_store.get_info(record.id)
        assert info.id == record.id
        assert "secretHash" not in info.to_dict()

    @pytest.mark.asyncio
    async def test_missing(self, key_store: KeyStore):
        assert await key_store.get_info("missing") is None

    @pytest.mark.asyncio
    async def test_corrupt_record(self, key_store: KeyStore, kv: MemoryKVStore):
        await kv.put(f"{KEY_INFO_PREFIX}bad", "{not json")
        assert await key_store.get_info("bad") is None
