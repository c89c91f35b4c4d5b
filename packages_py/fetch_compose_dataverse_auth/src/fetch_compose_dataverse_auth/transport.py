"""
Dataverse auth transport wrappers for httpx
"""
from typing import Any, Iterable, Optional

import httpx

from dataverse_auth import DEFAULT_PATH_PREFIX

from .handler import DataverseRequestHandler, create_request_handler


def _resolve_handler(
    handler: Optional[DataverseRequestHandler],
    dataverse_url: Optional[str],
    handler_kwargs: dict,
) -> DataverseRequestHandler:
    if handler is not None:
        return handler
    if not dataverse_url:
        raise ValueError("Either handler or dataverse_url is required")
    return create_request_handler(dataverse_url, **handler_kwargs)


class DataverseAuthTransport(httpx.AsyncBaseTransport):
    """
    Dataverse auth transport wrapper for httpx.

    Wraps another transport and authenticates requests that target the
    Dataverse Web API. Everything else is passed to the inner transport
    unchanged.

    Example:
        base = httpx.AsyncHTTPTransport()
        transport = DataverseAuthTransport(
            base,
            dataverse_url="https://org.crm.dynamics.com",
            mock_token="mock-token-123",
        )
        client = httpx.AsyncClient(transport=transport)
    """

    def __init__(
        self,
        inner: httpx.AsyncBaseTransport,
        *,
        handler: Optional[DataverseRequestHandler] = None,
        dataverse_url: Optional[str] = None,
        mock_token: Optional[str] = None,
        resolver: Optional[Any] = None,
        allowed_domains: Optional[Iterable[str]] = None,
        path_prefix: str = DEFAULT_PATH_PREFIX,
        enable_console_logging: bool = False,
    ) -> None:
        """
        Create a new DataverseAuthTransport.

        Args:
            inner: The wrapped transport to delegate requests to
            handler: Shared handler (e.g. from a DataverseSession)
            dataverse_url: Environment URL, used to build a handler when none is given
            mock_token: Static token; requests get a canned empty result
            resolver: Object with ``async resolve(url, allowed_domains)``
            allowed_domains: Extra allowed hosts for dataverse_url
            path_prefix: API path prefix. Default: /api/data
            enable_console_logging: Print status lines. Default: False
        """
        self._inner = inner
        self._handler = _resolve_handler(
            handler,
            dataverse_url,
            dict(
                mock_token=mock_token,
                resolver=resolver,
                allowed_domains=allowed_domains,
                path_prefix=path_prefix,
                enable_console_logging=enable_console_logging,
            ),
        )

    @property
    def handler(self) -> DataverseRequestHandler:
        return self._handler

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Handle an async HTTP request, authenticating Dataverse calls"""
        return await self._handler.handle_async(request, self._inner.handle_async_request)

    async def aclose(self) -> None:
        """Close the transport"""
        await self._inner.aclose()


class SyncDataverseAuthTransport(httpx.BaseTransport):
    """
    Synchronous Dataverse auth transport wrapper for httpx.

    Note: Only uses an already cached (or mock) token; it cannot wait on
    credential resolution. For async applications, use DataverseAuthTransport.
    """

    def __init__(
        self,
        inner: httpx.BaseTransport,
        *,
        handler: Optional[DataverseRequestHandler] = None,
        dataverse_url: Optional[str] = None,
        mock_token: Optional[str] = None,
        resolver: Optional[Any] = None,
        allowed_domains: Optional[Iterable[str]] = None,
        path_prefix: str = DEFAULT_PATH_PREFIX,
        enable_console_logging: bool = False,
    ) -> None:
        self._inner = inner
        self._handler = _resolve_handler(
            handler,
            dataverse_url,
            dict(
                mock_token=mock_token,
                resolver=resolver,
                allowed_domains=allowed_domains,
                path_prefix=path_prefix,
                enable_console_logging=enable_console_logging,
            ),
        )

    @property
    def handler(self) -> DataverseRequestHandler:
        return self._handler

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        """Handle a sync HTTP request, authenticating Dataverse calls"""
        return self._handler.handle_sync(request, self._inner.handle_request)

    def close(self) -> None:
        """Close the transport"""
        self._inner.close()
