"""
Tests for DataverseAuthService.

Test coverage includes:
- Token endpoint: 200 with no-store, 401 when no token
- Lifecycle: production gate, initial resolution, stop wipes the cache
- HTML injection in development mode only
"""
import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from dataverse_auth import TOKEN_ENDPOINT_PATH, ProductionEnvironmentError, token_cache
from dataverse_dev_server import NO_TOKEN_BODY, DataverseAuthService

from dev_server_helpers import DATAVERSE_URL, INDEX_HTML, MOCK_TOKEN, REAL_TOKEN, StubResolver


def service_app(service: DataverseAuthService) -> FastAPI:
    app = FastAPI(lifespan=service.lifespan)
    app.include_router(service.router())
    return app


class TestTokenEndpoint:
    def test_serves_mock_token(self):
        service = DataverseAuthService(
            DATAVERSE_URL, mock_token=MOCK_TOKEN, enable_console_logging=False
        )
        with TestClient(service_app(service)) as client:
            response = client.get(TOKEN_ENDPOINT_PATH)

        assert response.status_code == 200
        assert response.text == MOCK_TOKEN
        assert response.headers["cache-control"] == "no-store"
        assert response.headers["content-type"].startswith("text/plain")

    def test_serves_resolved_token(self):
        resolver = StubResolver(REAL_TOKEN)
        service = DataverseAuthService(
            DATAVERSE_URL, resolver=resolver, enable_console_logging=False
        )
        with TestClient(service_app(service)) as client:
            response = client.get(TOKEN_ENDPOINT_PATH)

        assert response.text == REAL_TOKEN
        assert resolver.calls == [DATAVERSE_URL]

    def test_returns_401_without_token(self):
        service = DataverseAuthService(
            DATAVERSE_URL, resolver=StubResolver(None), enable_console_logging=False
        )
        with TestClient(service_app(service)) as client:
            response = client.get(TOKEN_ENDPOINT_PATH)

        assert response.status_code == 401
        assert response.text == NO_TOKEN_BODY

    def test_custom_endpoint(self):
        service = DataverseAuthService(
            DATAVERSE_URL,
            mock_token=MOCK_TOKEN,
            token_endpoint="/_token",
            enable_console_logging=False,
        )
        with TestClient(service_app(service)) as client:
            assert client.get("/_token").text == MOCK_TOKEN


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_refuses_production(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "production")
        service = DataverseAuthService(
            DATAVERSE_URL, resolver=StubResolver(REAL_TOKEN), enable_console_logging=False
        )

        with pytest.raises(ProductionEnvironmentError):
            await service.start()

        assert not service.started
        assert token_cache.get() is None

    @pytest.mark.asyncio
    async def test_stop_cancels_refresh_and_clears_cache(self):
        service = DataverseAuthService(
            DATAVERSE_URL, resolver=StubResolver(REAL_TOKEN), enable_console_logging=False
        )
        await service.start()
        assert service.current_token() == REAL_TOKEN

        await service.stop()

        assert not service.started
        assert token_cache.get() is None
        assert service.current_token() is None

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self):
        resolver = StubResolver(REAL_TOKEN)
        service = DataverseAuthService(DATAVERSE_URL, resolver=resolver, enable_console_logging=False)

        await service.start()
        await service.start()
        await service.stop()

        assert len(resolver.calls) == 1

    @pytest.mark.asyncio
    async def test_resolver_error_is_logged_not_raised(self, caplog):
        class ExplodingResolver:
            async def resolve(self, resource_url, allowed_domains=None):
                raise RuntimeError("credential chain broke")

        service = DataverseAuthService(
            DATAVERSE_URL, resolver=ExplodingResolver(), enable_console_logging=False
        )
        with caplog.at_level(logging.ERROR):
            await service.start()
        await service.stop()

        assert "Token refresh failed" in caplog.text


class TestTransformIndexHtml:
    """Tests for script injection."""

    @pytest.fixture
    def service(self):
        return DataverseAuthService(DATAVERSE_URL, mock_token=MOCK_TOKEN, enable_console_logging=False)

    def test_injects_after_head_in_development(self, service):
        html = service.transform_index_html(INDEX_HTML, "development")

        head_end = html.index("<head>") + len("<head>")
        assert html[head_end:].startswith("<script>")
        assert html.count("<script>") == 1

    def test_head_with_attributes(self, service):
        html = service.transform_index_html('<html><head lang="en"><title>x</title></head></html>')
        assert '<head lang="en"><script>' in html

    def test_other_modes_are_untouched(self, service):
        assert service.transform_index_html(INDEX_HTML, "production") == INDEX_HTML

    def test_no_head_tag_is_untouched(self, service):
        html = "<html><body></body></html>"
        assert service.transform_index_html(html) == html

    def test_does_not_match_header_tag(self, service):
        html = "<header>nav</header>"
        assert service.transform_index_html(html) == html

    def test_script_references_endpoint_and_prefix(self, service):
        script = service.render_auth_script()

        assert '"/__dataverse_token__"' in script
        assert '"/api/data"' in script
        assert 'cache: "no-store"' in script
        assert "Bearer " in script
        assert MOCK_TOKEN not in script
