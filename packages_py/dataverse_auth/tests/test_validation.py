"""
Tests for dataverse_auth.security.validation and the environment gate.
"""
import pytest

from dataverse_auth import ProductionEnvironmentError
from dataverse_auth.security import (
    assert_non_production,
    is_absolute_url,
    is_production_environment,
    is_safe_request_url,
    is_valid_dataverse_url,
)


class TestIsValidDataverseUrl:
    """Tests for is_valid_dataverse_url()."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://contoso.crm.dynamics.com",
            "https://contoso.crm4.dynamics.com/",
            "https://contoso-dev.crm11.dynamics.com",
            "https://contoso.crm.microsoftdynamics.us",
            "https://contoso.crm.microsoftdynamics.de",
            "https://contoso.crm.microsoftdynamics.cn",
            "https://contoso.crm.dynamics.com:443",
        ],
    )
    def test_accepts_standard_domains(self, url):
        assert is_valid_dataverse_url(url) is True

    @pytest.mark.parametrize(
        "url",
        [
            "http://contoso.crm.dynamics.com",
            "https://contoso.example.com",
            "https://crm.dynamics.com.evil.com",
            "https://user:pw@contoso.crm.dynamics.com",
            "https://contoso.crm.dynamics.com/${env}",
            "https://contoso.crm.dynamics.com/a;rm",
            "https://contoso.crm.dynamics.com/a|b",
            "contoso.crm.dynamics.com",
            "",
            None,
        ],
    )
    def test_rejects_invalid(self, url):
        assert is_valid_dataverse_url(url) is False

    def test_accepts_custom_domain_and_subdomains(self):
        domains = ["dataverse.internal.test"]
        assert is_valid_dataverse_url("https://dataverse.internal.test", domains)
        assert is_valid_dataverse_url("https://org.dataverse.internal.test", domains)
        assert not is_valid_dataverse_url("https://evildataverse.internal.test", domains)

    def test_custom_domain_still_requires_https(self):
        assert not is_valid_dataverse_url("http://dataverse.internal.test", ["dataverse.internal.test"])


class TestIsSafeRequestUrl:
    """Tests for is_safe_request_url()."""

    @pytest.mark.parametrize(
        "url",
        [
            "/api/data/v9.1/accounts?$top=1",
            "api/data/v9.1/accounts",
            "/api/data/v9.2/accounts?$filter=name eq 'Contoso'&$select=name",
            "https://contoso.crm.dynamics.com/api/data/v9.2/accounts",
            "/accounts",
        ],
    )
    def test_accepts_ordinary_urls(self, url):
        assert is_safe_request_url(url) is True

    @pytest.mark.parametrize(
        "url",
        [
            "/api/data/v9.1/test?param=javascript:alert(1)",
            "javascript:alert(1)",
            "data:text/html,<b>x</b>",
            "file:///etc/passwd",
            "ftp://host/file",
            "vbscript:msgbox",
            "/api/data/<script>",
            "/api/data/${token}",
            "/api/data/a\\b",
            "/api/data/a\r\nHost: evil",
            "http://contoso.crm.dynamics.com/api/data",
            "//evil.example.com/api/data",
            "https://host:99999/api/data",
            "",
        ],
    )
    def test_rejects_suspicious_urls(self, url):
        assert is_safe_request_url(url) is False


class TestIsAbsoluteUrl:
    def test_absolute(self):
        assert is_absolute_url("https://contoso.crm.dynamics.com/x")

    def test_relative(self):
        assert not is_absolute_url("/api/data")
        assert not is_absolute_url("api/data")


class TestEnvironmentGate:
    """Tests for is_production_environment() / assert_non_production()."""

    @pytest.mark.parametrize("name", ["APP_ENV", "ENVIRONMENT"])
    @pytest.mark.parametrize("value", ["production", "PRODUCTION", " Production "])
    def test_detects_production(self, name, value):
        assert is_production_environment({name: value}) is True

    @pytest.mark.parametrize("value", ["development", "test", "prod", ""])
    def test_non_production_values(self, value):
        assert is_production_environment({"APP_ENV": value}) is False

    def test_assert_raises_with_production_in_message(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "production")
        with pytest.raises(ProductionEnvironmentError) as exc_info:
            assert_non_production()
        assert "production" in str(exc_info.value)

    def test_assert_passes_in_development(self):
        assert assert_non_production({"ENVIRONMENT": "development"}) is True
