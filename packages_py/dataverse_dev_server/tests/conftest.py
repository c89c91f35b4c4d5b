"""Pytest configuration and fixtures for dataverse_dev_server tests."""
import pytest

from dataverse_auth import token_cache
from dataverse_auth.security import ENVIRONMENT_VARIABLES

from dev_server_helpers import RecordingUpstream

DEV_SERVER_ENV = (
    "DATAVERSE_URL",
    "DATAVERSE_TOKEN_REFRESH_INTERVAL_MS",
    "DATAVERSE_ENABLE_CONSOLE_LOGGING",
    "DATAVERSE_SERVER_MODE",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch):
    for name in (*ENVIRONMENT_VARIABLES, *DEV_SERVER_ENV):
        monkeypatch.delenv(name, raising=False)
    token_cache.clear()
    yield
    token_cache.clear()


@pytest.fixture
def upstream() -> RecordingUpstream:
    return RecordingUpstream()
