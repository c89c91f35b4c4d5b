"""
Tests for dev server configuration.
"""
import pytest

from dataverse_auth import ConfigurationError
from dataverse_dev_server import (
    DataverseDevOptions,
    DataverseDevSettings,
    create_dataverse_config,
    create_dataverse_config_with_defaults,
)

from dev_server_helpers import DATAVERSE_URL, MOCK_TOKEN


class TestDataverseDevSettings:
    def test_defaults(self):
        settings = DataverseDevSettings()

        assert settings.DATAVERSE_URL is None
        assert settings.DATAVERSE_TOKEN_REFRESH_INTERVAL_MS == 50 * 60 * 1000
        assert settings.DATAVERSE_ENABLE_CONSOLE_LOGGING is True
        assert settings.DATAVERSE_SERVER_MODE == "development"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("DATAVERSE_URL", DATAVERSE_URL)
        monkeypatch.setenv("DATAVERSE_TOKEN_REFRESH_INTERVAL_MS", "120000")
        monkeypatch.setenv("DATAVERSE_ENABLE_CONSOLE_LOGGING", "false")

        settings = DataverseDevSettings()

        assert settings.DATAVERSE_URL == DATAVERSE_URL
        assert settings.DATAVERSE_TOKEN_REFRESH_INTERVAL_MS == 120000
        assert settings.DATAVERSE_ENABLE_CONSOLE_LOGGING is False


class TestCreateDataverseConfig:
    def test_builds_proxy_and_service(self):
        config = create_dataverse_config(
            DataverseDevOptions(dataverse_url=DATAVERSE_URL + "/", mock_token=MOCK_TOKEN)
        )

        assert set(config.proxy) == {"^/api/data", "^api/data"}
        assert config.auth_service.dataverse_url == DATAVERSE_URL
        assert config.mode == "development"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"dataverse_url": "https://example.com"},
            {"dataverse_url": "http://contoso.crm.dynamics.com"},
            {"token_refresh_interval_ms": 59999},
            {"mock_token": "short"},
            {"custom_proxy_options": {"rewrite": True}},
        ],
    )
    def test_rejects_invalid_options(self, overrides):
        values = {"dataverse_url": DATAVERSE_URL, **overrides}
        with pytest.raises(ConfigurationError):
            create_dataverse_config(DataverseDevOptions(**values))

    def test_custom_domain(self):
        config = create_dataverse_config(
            DataverseDevOptions(
                dataverse_url="https://dataverse.internal.test",
                allowed_domains=["internal.test"],
            )
        )
        assert config.auth_service.dataverse_url == "https://dataverse.internal.test"

    def test_script_prefix_follows_proxy_path(self):
        config = create_dataverse_config(
            DataverseDevOptions(
                dataverse_url=DATAVERSE_URL, mock_token=MOCK_TOKEN, proxy_path="^/custom/api"
            )
        )

        assert set(config.proxy) == {"^/custom/api", "^custom/api"}
        assert 'var PATH_PREFIX = "/custom/api";' in config.auth_service.render_auth_script()

    def test_explicit_path_prefix(self):
        config = create_dataverse_config(
            DataverseDevOptions(
                dataverse_url=DATAVERSE_URL,
                mock_token=MOCK_TOKEN,
                proxy_path="^/api/(data|custom)",
                path_prefix="/api",
            )
        )
        assert 'var PATH_PREFIX = "/api";' in config.auth_service.render_auth_script()

    @pytest.mark.parametrize(
        "overrides",
        [{"proxy_path": "^/api/(data|custom)"}, {"path_prefix": "api/data"}],
    )
    def test_rejects_unusable_path_prefix(self, overrides):
        with pytest.raises(ConfigurationError, match="path_prefix"):
            create_dataverse_config(DataverseDevOptions(dataverse_url=DATAVERSE_URL, **overrides))

    def test_skip_authentication_builds_proxy_only(self):
        config = create_dataverse_config(
            DataverseDevOptions(dataverse_url=DATAVERSE_URL, skip_authentication=True)
        )

        assert set(config.proxy) == {"^/api/data", "^api/data"}
        assert config.auth_service is None

    def test_skip_authentication_still_validates_url(self):
        with pytest.raises(ConfigurationError):
            create_dataverse_config(
                DataverseDevOptions(dataverse_url="https://example.com", skip_authentication=True)
            )


class TestCreateDataverseConfigWithDefaults:
    def test_explicit_url_wins(self, monkeypatch):
        monkeypatch.setenv("DATAVERSE_URL", "https://other.crm.dynamics.com")
        config = create_dataverse_config_with_defaults(DATAVERSE_URL)
        assert config.auth_service.dataverse_url == DATAVERSE_URL

    def test_environment_url(self, monkeypatch):
        monkeypatch.setenv("DATAVERSE_URL", DATAVERSE_URL)
        monkeypatch.setenv("DATAVERSE_SERVER_MODE", "preview")

        config = create_dataverse_config_with_defaults()

        assert config.auth_service.dataverse_url == DATAVERSE_URL
        assert config.mode == "preview"

    def test_fallback_url(self):
        config = create_dataverse_config_with_defaults(fallback_url=DATAVERSE_URL)
        assert config.auth_service.dataverse_url == DATAVERSE_URL

    def test_missing_url_raises(self):
        with pytest.raises(ConfigurationError, match="Dataverse URL is required"):
            create_dataverse_config_with_defaults()

    def test_overrides(self):
        config = create_dataverse_config_with_defaults(
            DATAVERSE_URL, mock_token=MOCK_TOKEN, additional_paths=["/api/custom"]
        )
        assert "^/api/custom" in config.proxy
        assert config.auth_service.token_source.uses_mock_token
