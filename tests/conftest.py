"""
Global pytest fixtures and configuration for test suite.

This module provides reusable fixtures for:
- Fake host pages and scripted classification clients
- Credential stores
- An audit session and API client wired to the fakes
"""

import os
from typing import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from comment_detox.api.app import create_app
from comment_detox.audit.session import AuditSession
from comment_detox.credentials import InMemoryCredentialStore
from .fixtures.classifiers import ScriptedClient, TOXIC_SCORE
from .fixtures.pages import FakePage, comment_card


TEST_API_KEY = "test-key-not-for-production"


@pytest.fixture
def credential_store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore(TEST_API_KEY)


@pytest.fixture
def fake_page() -> FakePage:
    """Two rendered comments: one toxic, one clean."""
    return FakePage(buttons=[comment_card("you are an idiot"), comment_card("great video")])


@pytest.fixture
def scripted_client() -> ScriptedClient:
    return ScriptedClient({"you are an idiot": TOXIC_SCORE})


@pytest.fixture
def audit_session(fake_page, credential_store, scripted_client) -> Generator[AuditSession, None, None]:
    """
    Audit session over the fake page, with zero waits.

    Yields:
        AuditSession; closed after the test
    """
    session = AuditSession(
        page_factory=lambda: fake_page,
        credential_store=credential_store,
        client_factory=lambda: scripted_client,
        rate_limit_cooldown=0,
    )
    yield session
    session.close()


@pytest.fixture
def app(audit_session, credential_store):
    return create_app(session=audit_session, credential_store=credential_store)


@pytest_asyncio.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """
    Create async HTTP client for testing FastAPI endpoints.

    Yields:
        AsyncClient instance
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture(autouse=True)
def reset_env_vars():
    """
    Reset environment variables before each test.

    This prevents test pollution from env var changes.
    """
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)


# Configuration for pytest-asyncio
def pytest_configure(config):
    """
    Configure pytest with custom markers and settings.
    """
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (API, end-to-end)"
    )
