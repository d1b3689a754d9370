"""Tests for the admin router."""

import asyncio

import pytest
from starlette.testclient import TestClient

from mcpgate.auth import MAX_KEY_EXPIRY_DAYS, KeyOwner
from mcpgate.types import SessionKind


@pytest.fixture
def client(gateway) -> TestClient:
    return TestClient(gateway.app)


@pytest.fixture
def admin_session(gateway, alice_principal) -> str:
    """Admin session for the seeded admin ``alice``."""
    return asyncio.run(gateway.session_store.create(SessionKind.ADMIN_SESSION, alice_principal, "t"))


@pytest.fixture
def bob_admin_session(gateway, bob_principal) -> str:
    """Admin session for ``bob``, who is not in the admin list."""
    return asyncio.run(gateway.session_store.create(SessionKind.ADMIN_SESSION, bob_principal, "t"))


class TestAdminAccess:
    """Tests for admin session enforcement."""

    def test_dashboard_without_session_redirects(self, client):
        response = client.get("/admin", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "/admin/authorize"

    def test_dashboard_for_non_admin_redirects(self, client, bob_admin_session):
        response = client.get(f"/admin?session={bob_admin_session}", follow_redirects=False)
        assert response.status_code == 302

    def test_api_without_session_is_401(self, client):
        response = client.get("/admin/users")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTH_REQUIRED"

    def test_api_for_non_admin_is_403(self, client, bob_admin_session):
        response = client.get(f"/admin/users?session={bob_admin_session}")
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "ADMIN_REQUIRED"

    def test_ordinary_session_is_not_admin_session(self, client, gateway, alice_principal):
        session_id = asyncio.run(gateway.session_store.create(SessionKind.SESSION, alice_principal, "t"))
        assert client.get(f"/admin/users?session={session_id}").status_code == 401

    def test_dashboard(self, client, admin_session):
        response = client.get(f"/admin?session={admin_session}&message=hello")
        assert response.status_code == 200
        data = response.json()
        assert data["profile"]["login"] == "alice"
        assert data["admins"] == ["alice"]
        assert data["apiKeys"] == []
        assert data["message"] == "hello"


class TestApiKeys:
    """Tests for API key management."""

    def test_generate_defaults(self, client, admin_session):
        response = client.post(f"/admin/api-keys/generate?session={admin_session}")
        assert response.status_code == 200
        assert response.headers["Cache-Control"] == "no-store"
        data = response.json()
        assert data["apiKey"].startswith("mcp_")
        assert data["key"]["name"] == "New API Key"
        assert data["key"]["createdBy"]["login"] == "alice"
        assert "secretHash" not in data["key"]

    def test_generated_key_opens_stream(self, client, admin_session):
        plaintext = client.post(f"/admin/api-keys/generate?session={admin_session}", data={"name": "ci"}).json()["apiKey"]
        response = client.get("/sse", headers={"Authorization": f"Bearer {plaintext}", "Accept": "text/event-stream"})
        assert response.status_code == 200

    def test_generate_with_get_parameters(self, client, admin_session):
        response = client.get(f"/admin/api-keys/generate?session={admin_session}&name=cron&expires=7")
        assert response.json()["key"]["name"] == "cron"

    @pytest.mark.parametrize("expires", ["0", "-3", "soon", "3000000"])
    def test_generate_rejects_bad_expiry(self, client, admin_session, expires):
        response = client.post(f"/admin/api-keys/generate?session={admin_session}", data={"expires": expires})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "FIELD_INVALID"
        assert response.json()["error"]["field"] == "expires"

    def test_generate_accepts_longest_expiry(self, client, admin_session):
        response = client.post(
            f"/admin/api-keys/generate?session={admin_session}", data={"expires": str(MAX_KEY_EXPIRY_DAYS)}
        )
        assert response.status_code == 200

    def test_list_only_own_keys(self, client, gateway, admin_session):
        asyncio.run(gateway.key_store.generate("bob's", KeyOwner(id="1002", login="bob")))
        client.post(f"/admin/api-keys/generate?session={admin_session}", data={"name": "mine"})

        keys = client.get(f"/admin/api-keys?session={admin_session}").json()["apiKeys"]
        assert [key["name"] for key in keys] == ["mine"]

    def test_deactivate(self, client, admin_session):
        data = client.post(f"/admin/api-keys/generate?session={admin_session}").json()
        key_id = data["key"]["id"]

        response = client.post(f"/admin/api-keys/deactivate?session={admin_session}", data={"key_id": key_id})
        assert response.status_code == 200

        response = client.get("/sse", headers={"Authorization": f"Bearer {data['apiKey']}", "Accept": "text/event-stream"})
        assert response.status_code == 401

    def test_deactivate_other_users_key(self, client, gateway, admin_session):
        _, record = asyncio.run(gateway.key_store.generate("bob's", KeyOwner(id="1002", login="bob")))
        response = client.post(f"/admin/api-keys/deactivate?session={admin_session}", data={"key_id": record.id})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "KEY_NOT_DEACTIVATED"

    def test_deactivate_requires_key_id(self, client, admin_session):
        response = client.post(f"/admin/api-keys/deactivate?session={admin_session}")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "FIELD_REQUIRED"


class TestAdminUsers:
    """Tests for admin list management."""

    def test_add_and_remove(self, client, admin_session):
        response = client.post(f"/admin/users/add?session={admin_session}", data={"username": "bob"})
        assert response.json()["admins"] == ["alice", "bob"]

        response = client.post(f"/admin/users/add?session={admin_session}", data={"username": "bob"})
        assert response.json()["admins"] == ["alice", "bob"]

        response = client.post(f"/admin/users/remove?session={admin_session}", data={"username": "bob"})
        assert response.json()["admins"] == ["alice"]

    def test_cannot_remove_self(self, client, admin_session):
        client.post(f"/admin/users/add?session={admin_session}", data={"username": "bob"})
        response = client.post(f"/admin/users/remove?session={admin_session}", data={"username": "alice"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "ADMIN_SELF_REMOVAL"

    def test_last_admin_refusal_is_409(self, client, gateway, admin_session, monkeypatch):
        """Test a removal the registry refuses surfaces as a conflict."""

        async def refuse(username):
            return False

        monkeypatch.setattr(gateway.admin_registry, "remove", refuse)
        response = client.post(f"/admin/users/remove?session={admin_session}", data={"username": "bob"})
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "ADMIN_LAST_MEMBER"

    def test_add_requires_username(self, client, admin_session):
        response = client.post(f"/admin/users/add?session={admin_session}", data={"username": "  "})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "FIELD_REQUIRED"

    def test_demoted_admin_loses_access(self, client, gateway, admin_session):
        asyncio.run(gateway.kv_store.put("admin_users", '["bob"]'))
        assert client.get(f"/admin/users?session={admin_session}").status_code == 403
