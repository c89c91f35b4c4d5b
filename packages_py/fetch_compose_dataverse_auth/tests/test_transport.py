"""
Tests for the transport wrappers and factory functions.
"""
import json

import httpx
import pytest

from fetch_compose_dataverse_auth import (
    DataverseAuthTransport,
    RequestInput,
    SyncDataverseAuthTransport,
    compose_sync_transport,
    compose_transport,
    create_dataverse_client,
    create_dataverse_sync_client,
    create_dataverse_sync_transport,
    create_dataverse_transport,
    normalize_request_input,
)

from fetch_helpers import DATAVERSE_URL, MOCK_TOKEN, REAL_TOKEN, StubResolver


class TestDataverseAuthTransport:
    """Tests for the async transport wrapper."""

    class TestConstructor:
        def test_builds_handler_from_url(self, mock_transport):
            transport = DataverseAuthTransport(
                mock_transport, dataverse_url=DATAVERSE_URL, mock_token=MOCK_TOKEN
            )
            assert transport.handler.dataverse_url == DATAVERSE_URL

        def test_uses_given_handler(self, mock_transport, mock_handler):
            transport = DataverseAuthTransport(mock_transport, handler=mock_handler)
            assert transport.handler is mock_handler

        def test_requires_handler_or_url(self, mock_transport):
            with pytest.raises(ValueError, match="handler or dataverse_url is required"):
                DataverseAuthTransport(mock_transport)

    @pytest.mark.asyncio
    async def test_client_with_mock_token(self, mock_transport):
        transport = DataverseAuthTransport(
            mock_transport, dataverse_url=DATAVERSE_URL, mock_token=MOCK_TOKEN
        )
        async with httpx.AsyncClient(transport=transport, base_url=DATAVERSE_URL) as client:
            response = await client.get("/api/data/v9.2/accounts")

        assert response.status_code == 200
        assert response.json() == {"value": []}
        assert mock_transport.requests == []

    @pytest.mark.asyncio
    async def test_client_forwards_real_token(self, mock_transport):
        transport = DataverseAuthTransport(
            mock_transport, dataverse_url=DATAVERSE_URL, resolver=StubResolver(REAL_TOKEN)
        )
        async with httpx.AsyncClient(transport=transport, base_url=DATAVERSE_URL) as client:
            response = await client.get("/api/data/v9.2/accounts", params={"$top": "1"})

        assert response.json() == {"success": True}
        assert mock_transport.requests[0].headers["Authorization"] == f"Bearer {REAL_TOKEN}"

    @pytest.mark.asyncio
    async def test_client_passes_other_hosts_through(self, mock_transport):
        transport = DataverseAuthTransport(
            mock_transport, dataverse_url=DATAVERSE_URL, mock_token=MOCK_TOKEN
        )
        async with httpx.AsyncClient(transport=transport) as client:
            await client.get("https://api.example.com/api/data/v9.2/accounts")

        assert len(mock_transport.requests) == 1
        assert "authorization" not in mock_transport.requests[0].headers

    @pytest.mark.asyncio
    async def test_aclose_closes_inner(self, mock_transport, mock_handler):
        transport = DataverseAuthTransport(mock_transport, handler=mock_handler)
        await transport.aclose()
        assert mock_transport.closed


class TestSyncDataverseAuthTransport:
    def test_client_with_mock_token(self, mock_sync_transport):
        transport = SyncDataverseAuthTransport(
            mock_sync_transport, dataverse_url=DATAVERSE_URL, mock_token=MOCK_TOKEN
        )
        with httpx.Client(transport=transport, base_url=DATAVERSE_URL) as client:
            response = client.get("/api/data/v9.2/accounts")

        assert response.json() == {"value": []}

    def test_close_closes_inner(self, mock_sync_transport, mock_handler):
        SyncDataverseAuthTransport(mock_sync_transport, handler=mock_handler).close()
        assert mock_sync_transport.closed


class TestFactory:
    """Tests for compose and client factories."""

    def test_compose_transport_applies_in_order(self, mock_transport, mock_handler):
        transport = compose_transport(mock_transport, create_dataverse_transport(mock_handler))
        assert isinstance(transport, DataverseAuthTransport)
        assert transport._inner is mock_transport

    def test_compose_sync_transport(self, mock_sync_transport, mock_handler):
        transport = compose_sync_transport(
            mock_sync_transport, create_dataverse_sync_transport(mock_handler)
        )
        assert isinstance(transport, SyncDataverseAuthTransport)

    def test_compose_without_wrappers_returns_base(self, mock_transport):
        assert compose_transport(mock_transport) is mock_transport

    @pytest.mark.asyncio
    async def test_create_dataverse_client_defaults_base_url(self):
        client = create_dataverse_client(dataverse_url=DATAVERSE_URL, mock_token=MOCK_TOKEN)
        async with client:
            assert str(client.base_url) == f"{DATAVERSE_URL}/"
            response = await client.get("/api/data/v9.2/accounts")
        assert response.json() == {"value": []}

    def test_create_dataverse_sync_client(self):
        with create_dataverse_sync_client(dataverse_url=DATAVERSE_URL, mock_token=MOCK_TOKEN) as client:
            response = client.get("/api/data/v9.2/accounts")
        assert response.status_code == 200


class TestRequestInput:
    """Tests for the request input tagged union."""

    def test_from_string(self):
        value = normalize_request_input("/api/data/v9.2/accounts")
        assert value.kind == "string"
        assert value.url == "/api/data/v9.2/accounts"

    def test_from_url(self):
        value = normalize_request_input(httpx.URL(f"{DATAVERSE_URL}/api/data"))
        assert value.kind == "url"
        assert value.url == f"{DATAVERSE_URL}/api/data"

    def test_from_request(self):
        request = httpx.Request("POST", "/api/data/v9.2/accounts")
        value = normalize_request_input(request)
        assert value.kind == "request"
        assert value.to_request("GET") is request

    def test_passes_existing_input_through(self):
        value = RequestInput.from_string("/x")
        assert normalize_request_input(value) is value

    def test_to_request_builds_from_string(self):
        request = RequestInput.from_string("/api/data/v9.2/accounts").to_request(
            "PATCH", json={"name": "x"}
        )
        assert request.method == "PATCH"
        assert json.loads(request.content) == {"name": "x"}

    @pytest.mark.parametrize("value", [None, 42, b"/api/data"])
    def test_rejects_other_types(self, value):
        with pytest.raises(TypeError, match="Unsupported request input type"):
            normalize_request_input(value)
