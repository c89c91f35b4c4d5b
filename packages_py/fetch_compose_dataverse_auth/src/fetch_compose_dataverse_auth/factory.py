"""
Factory functions for creating Dataverse-authenticated transports and clients
"""
from typing import Any, Callable, Optional, TYPE_CHECKING

import httpx

from .handler import DataverseRequestHandler
from .transport import DataverseAuthTransport, SyncDataverseAuthTransport

if TYPE_CHECKING:
    from .session import DataverseSession


def compose_transport(
    base: httpx.AsyncBaseTransport,
    *wrappers: Callable[[httpx.AsyncBaseTransport], httpx.AsyncBaseTransport],
) -> httpx.AsyncBaseTransport:
    """
    Apply transport wrappers to ``base``, innermost first.

    Example:
        transport = compose_transport(
            httpx.AsyncHTTPTransport(),
            create_dataverse_transport(session.handler),
        )
        client = httpx.AsyncClient(transport=transport)
    """
    transport = base
    for wrapper in wrappers:
        transport = wrapper(transport)
    return transport


def compose_sync_transport(
    base: httpx.BaseTransport,
    *wrappers: Callable[[httpx.BaseTransport], httpx.BaseTransport],
) -> httpx.BaseTransport:
    """Sync counterpart of compose_transport."""
    transport = base
    for wrapper in wrappers:
        transport = wrapper(transport)
    return transport


def create_dataverse_transport(
    handler: DataverseRequestHandler,
) -> Callable[[httpx.AsyncBaseTransport], DataverseAuthTransport]:
    """Wrapper function for compose_transport."""

    def wrapper(inner: httpx.AsyncBaseTransport) -> DataverseAuthTransport:
        return DataverseAuthTransport(inner, handler=handler)

    return wrapper


def create_dataverse_sync_transport(
    handler: DataverseRequestHandler,
) -> Callable[[httpx.BaseTransport], SyncDataverseAuthTransport]:
    """Wrapper function for compose_sync_transport."""

    def wrapper(inner: httpx.BaseTransport) -> SyncDataverseAuthTransport:
        return SyncDataverseAuthTransport(inner, handler=handler)

    return wrapper


def _handler_kwargs(
    session: Optional["DataverseSession"],
    dataverse_url: Optional[str],
    handler_kwargs: dict,
) -> dict:
    if session is not None:
        return {"handler": session.handler}
    return dict(dataverse_url=dataverse_url, **handler_kwargs)


def create_dataverse_client(
    *,
    session: Optional["DataverseSession"] = None,
    dataverse_url: Optional[str] = None,
    mock_token: Optional[str] = None,
    resolver: Optional[Any] = None,
    base_url: Optional[str] = None,
    proxy: Optional[str] = None,
    timeout: float = 30.0,
    **client_kwargs: Any,
) -> httpx.AsyncClient:
    """
    Create an async HTTP client that authenticates Dataverse Web API calls.

    The client's base URL defaults to the Dataverse URL, so relative paths
    such as ``/api/data/v9.2/accounts`` are routed there.

    Args:
        session: Active session to share its handler and token
        dataverse_url: Environment URL (when no session is given)
        mock_token: Static token (when no session is given)
        resolver: Credential resolver (when no session is given)
        base_url: Base URL for requests. Default: the Dataverse URL
        proxy: Proxy URL to use
        timeout: Request timeout in seconds. Default: 30.0
        **client_kwargs: Additional arguments for httpx.AsyncClient

    Example:
        async with create_dataverse_client(session=session) as client:
            response = await client.get("/api/data/v9.2/accounts?$top=1")
    """
    transport = DataverseAuthTransport(
        httpx.AsyncHTTPTransport(proxy=proxy),
        **_handler_kwargs(session, dataverse_url, dict(mock_token=mock_token, resolver=resolver)),
    )
    return httpx.AsyncClient(
        transport=transport,
        base_url=base_url or transport.handler.dataverse_url,
        timeout=timeout,
        **client_kwargs,
    )


def create_dataverse_sync_client(
    *,
    session: Optional["DataverseSession"] = None,
    dataverse_url: Optional[str] = None,
    mock_token: Optional[str] = None,
    resolver: Optional[Any] = None,
    base_url: Optional[str] = None,
    proxy: Optional[str] = None,
    timeout: float = 30.0,
    **client_kwargs: Any,
) -> httpx.Client:
    """
    Create a sync HTTP client that authenticates Dataverse Web API calls.

    Only a cached or mock token is used; see SyncDataverseAuthTransport.
    """
    transport = SyncDataverseAuthTransport(
        httpx.HTTPTransport(proxy=proxy),
        **_handler_kwargs(session, dataverse_url, dict(mock_token=mock_token, resolver=resolver)),
    )
    return httpx.Client(
        transport=transport,
        base_url=base_url or transport.handler.dataverse_url,
        timeout=timeout,
        **client_kwargs,
    )
