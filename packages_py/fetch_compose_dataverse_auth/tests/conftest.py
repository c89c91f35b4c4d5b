"""Pytest configuration and fixtures for fetch_compose_dataverse_auth tests."""
import pytest

from dataverse_auth import token_cache
from dataverse_auth.security import ENVIRONMENT_VARIABLES
from fetch_compose_dataverse_auth import (
    DataverseRequestHandler,
    TokenSource,
    reset_dataverse_setup,
)

from fetch_helpers import (
    DATAVERSE_URL,
    MOCK_TOKEN,
    REAL_TOKEN,
    MockAsyncTransport,
    MockSyncTransport,
    StubResolver,
)


@pytest.fixture(autouse=True)
def clean_state(monkeypatch: pytest.MonkeyPatch):
    """Fresh environment, empty cache and no active session around every test."""
    for name in ENVIRONMENT_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    reset_dataverse_setup()
    yield
    reset_dataverse_setup()
    token_cache.clear()


@pytest.fixture
def mock_transport() -> MockAsyncTransport:
    return MockAsyncTransport()


@pytest.fixture
def mock_sync_transport() -> MockSyncTransport:
    return MockSyncTransport()


@pytest.fixture
def mock_handler() -> DataverseRequestHandler:
    """Handler holding a static mock token."""
    return DataverseRequestHandler(
        DATAVERSE_URL,
        TokenSource(DATAVERSE_URL, mock_token=MOCK_TOKEN),
    )


@pytest.fixture
def real_token_resolver() -> StubResolver:
    return StubResolver(REAL_TOKEN)


@pytest.fixture
def real_handler(real_token_resolver: StubResolver) -> DataverseRequestHandler:
    """Handler that resolves a real-looking token on demand."""
    return DataverseRequestHandler(
        DATAVERSE_URL,
        TokenSource(DATAVERSE_URL, resolver=real_token_resolver),
    )
