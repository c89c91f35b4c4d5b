"""
fetch(): the package's request function.

Accepts relative URLs such as ``/api/data/v9.2/accounts`` and always
returns a response for Dataverse calls; see handler.py for the rules.

    session = await setup_dataverse({"dataverseUrl": "https://org.crm.dynamics.com"})
    response = await fetch("/api/data/v9.2/accounts?$select=name")
    response.json()["value"]

Requests are sent straight through a transport rather than an
``httpx.Client``, so a relative URL never reaches client-side cookie or
base-URL handling.
"""
import logging
from typing import Any, Optional

import httpx

from dataverse_auth import sanitize

from .handler import DataverseRequestHandler
from .registry import get_active_session
from .request_input import normalize_request_input
from .responses import request_failed_response

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


def _active_handler(handler: Optional[DataverseRequestHandler]) -> Optional[DataverseRequestHandler]:
    if handler is not None:
        return handler
    session = get_active_session()
    return session.handler if session is not None else None


def _build_request(
    input: Any,
    method: str,
    timeout: float,
    request_kwargs: dict,
) -> httpx.Request:
    request = normalize_request_input(input).to_request(method, **request_kwargs)
    if "timeout" not in request.extensions:
        request.extensions["timeout"] = httpx.Timeout(timeout).as_dict()
    return request


async def fetch(
    input: Any,
    *,
    method: str = "GET",
    handler: Optional[DataverseRequestHandler] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    **request_kwargs: Any,
) -> httpx.Response:
    """
    Send a request, authenticating it when it targets the Dataverse Web API.

    Args:
        input: str, httpx.URL or httpx.Request
        method: HTTP method for str/URL inputs. Default: GET
        handler: Handler to use. Default: the active session's handler
        transport: Transport to send through. Default: a fresh
            httpx.AsyncHTTPTransport, closed after the body is read
        timeout: Request timeout in seconds. Default: 30.0
        **request_kwargs: headers, params, content, json, ... for httpx.Request

    Returns:
        httpx.Response with its body already read
    """
    handler = _active_handler(handler)

    try:
        request = _build_request(input, method, timeout, request_kwargs)
    except TypeError:
        raise
    except Exception as e:
        if handler is None:
            raise
        logger.error(f"fetch: could not build request: {sanitize(e)}")
        return request_failed_response()

    owns_transport = transport is None
    transport = transport or httpx.AsyncHTTPTransport()
    try:
        if handler is None:
            response = await transport.handle_async_request(request)
        else:
            response = await handler.handle_async(request, transport.handle_async_request)
        await response.aread()
        return response
    finally:
        if owns_transport:
            await transport.aclose()


def fetch_sync(
    input: Any,
    *,
    method: str = "GET",
    handler: Optional[DataverseRequestHandler] = None,
    transport: Optional[httpx.BaseTransport] = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    **request_kwargs: Any,
) -> httpx.Response:
    """
    Blocking fetch(). Uses the cached or mock token only; an empty cache
    gives 401.
    """
    handler = _active_handler(handler)

    try:
        request = _build_request(input, method, timeout, request_kwargs)
    except TypeError:
        raise
    except Exception as e:
        if handler is None:
            raise
        logger.error(f"fetch_sync: could not build request: {sanitize(e)}")
        return request_failed_response()

    owns_transport = transport is None
    transport = transport or httpx.HTTPTransport()
    try:
        if handler is None:
            response = transport.handle_request(request)
        else:
            response = handler.handle_sync(request, transport.handle_request)
        response.read()
        return response
    finally:
        if owns_transport:
            transport.close()
