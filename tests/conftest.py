"""
Pytest configuration and shared fixtures for mcpgate tests.
"""

import asyncio
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
from sse_starlette.sse import AppStatus

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from mcpgate.application import GatewayApplication  # noqa: E402
from mcpgate.auth import (  # noqa: E402
    AdminRegistry,
    AuthResolver,
    IdentityProvider,
    KeyOwner,
    KeyStore,
    SessionPrincipal,
    SessionStore,
)
from mcpgate.config import BridgeConfig, GatewayConfig, StoreConfig  # noqa: E402
from mcpgate.errors import create_error  # noqa: E402
from mcpgate.store import MemoryKVStore  # noqa: E402
from mcpgate.types import StoreBackend  # noqa: E402


# =============================================================================
# Clocks
# =============================================================================


class FakeClock:
    """Monotonic clock for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeWallClock:
    """Wall clock for expiry tests."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


# =============================================================================
# Identity provider double
# =============================================================================


class FakeIdentityProvider(IdentityProvider):
    """Identity provider that maps codes to canned principals."""

    def __init__(self, users: dict[str, SessionPrincipal] | None = None):
        self.users = users or {}
        self.exchanged: list[str] = []

    def authorization_url(self, redirect_uri: str, state: str | None = None) -> str:
        url = f"https://idp.example/authorize?redirect_uri={redirect_uri}"
        if state:
            url += f"&state={state}"
        return url

    async def exchange(self, code: str, redirect_uri: str) -> tuple[str, SessionPrincipal]:
        self.exchanged.append(code)
        if code not in self.users:
            raise create_error("OAUTH_FAILED", reason="bad_verification_code")
        return f"token-{code}", self.users[code]


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def wall_clock() -> FakeWallClock:
    return FakeWallClock()


@pytest.fixture
def kv(clock: FakeClock) -> MemoryKVStore:
    """In-memory store on a fake clock."""
    return MemoryKVStore(clock=clock)


@pytest.fixture
def key_store(kv: MemoryKVStore, wall_clock: FakeWallClock) -> KeyStore:
    return KeyStore(kv, clock=wall_clock)


@pytest.fixture
def session_store(kv: MemoryKVStore) -> SessionStore:
    return SessionStore(kv)


@pytest.fixture
def admin_registry(kv: MemoryKVStore) -> AdminRegistry:
    return AdminRegistry(kv)


@pytest.fixture
def resolver(key_store: KeyStore, session_store: SessionStore, admin_registry: AdminRegistry) -> AuthResolver:
    return AuthResolver(key_store, session_store, admin_registry)


@pytest.fixture
def alice_owner() -> KeyOwner:
    return KeyOwner(id="1001", login="alice", name="Alice")


@pytest.fixture
def bob_owner() -> KeyOwner:
    return KeyOwner(id="1002", login="bob", name="Bob")


@pytest.fixture
def alice_principal() -> SessionPrincipal:
    return SessionPrincipal(external_id="1001", login="alice", display_name="Alice")


@pytest.fixture
def bob_principal() -> SessionPrincipal:
    return SessionPrincipal(external_id="1002", login="bob", display_name="Bob")


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture
def gateway_config() -> GatewayConfig:
    """Memory-backed config with short stream timings."""
    return GatewayConfig(
        store=StoreConfig(backend=StoreBackend.MEMORY),
        bridge=BridgeConfig(heartbeat_interval=0.05, max_lifetime=0.3),
    )


@pytest.fixture
def identity_provider(alice_principal: SessionPrincipal, bob_principal: SessionPrincipal) -> FakeIdentityProvider:
    return FakeIdentityProvider({"alice-code": alice_principal, "bob-code": bob_principal})


@pytest.fixture
def gateway(
    gateway_config: GatewayConfig,
    kv: MemoryKVStore,
    identity_provider: FakeIdentityProvider,
) -> GatewayApplication:
    """Initialized application sharing the ``kv`` fixture."""
    gateway_config.auth.seed_admin = "alice"
    application = GatewayApplication(
        config=gateway_config,
        kv_store=kv,
        identity_provider=identity_provider,
        log_output=_NullOutput(),
    )
    asyncio.run(application.initialize())
    return application


@pytest.fixture(autouse=True)
def reset_sse_exit_event():
    """Each TestClient request runs on a fresh loop; the SSE exit event binds to the first one."""
    AppStatus.should_exit_event = None
    yield
    AppStatus.should_exit_event = None


class _NullOutput:
    def write(self, text: str) -> int:
        return len(text)

    def flush(self) -> None:
        pass


def run(coro: Any) -> Any:
    """Run a coroutine from a synchronous test."""
    return asyncio.run(coro)


# =============================================================================
# Markers Configuration
# =============================================================================


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "property: Property-based tests")
    config.addinivalue_line("markers", "security: Security tests")
    config.addinivalue_line("markers", "bridge: Streaming bridge tests")
