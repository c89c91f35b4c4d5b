"""Pytest configuration and fixtures for dataverse_auth tests."""
import pytest

from dataverse_auth import token_cache
from dataverse_auth.security import ENVIRONMENT_VARIABLES

from auth_helpers import FakeClock


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch):
    """No production marker unless a test sets one."""
    for name in ENVIRONMENT_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def clear_shared_cache():
    token_cache.clear()
    yield
    token_cache.clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
