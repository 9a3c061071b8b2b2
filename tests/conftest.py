"""
Pytest configuration and fixtures for the test suite.
"""
import pytest
import pytest_asyncio
import os
import sys

# Add src directory and project root to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from erp_session import (
    MemoryCredentialStore,
    SessionConfig,
    SessionContext,
    StorageKeys,
)
from erp_session.client import AuthenticatedClient
from tests.fixtures.erp_backend import BASE_URL, ERPBackend


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an async test"
    )


@pytest.fixture
def backend():
    """Fake ERP server; tests register routes on it."""
    return ERPBackend()


@pytest.fixture
def store():
    """Credential store holding a logged-in session."""
    return MemoryCredentialStore(
        {
            StorageKeys.BASE_URL: BASE_URL,
            StorageKeys.ACCESS_TOKEN: "token-123",
            StorageKeys.REFRESH_TOKEN: "refresh-123",
        }
    )


@pytest.fixture
def teardown_calls():
    """Records each invocation of the session teardown hook."""
    return []


@pytest.fixture
def session_config():
    return SessionConfig()


@pytest_asyncio.fixture
async def session(backend, store, teardown_calls, session_config):
    ctx = SessionContext(
        store,
        config=session_config,
        http_client=backend.http_client(),
        on_teardown=lambda: teardown_calls.append("teardown"),
    )
    yield ctx
    await ctx.transport.client.aclose()


@pytest.fixture
def client(session):
    return AuthenticatedClient(session)
