"""
Synthetic responses returned instead of raising across the request boundary.
"""
from typing import Optional

import httpx

ODATA_VERSION = "4.0"

AUTHENTICATION_REQUIRED = {"error": "Authentication required"}
REQUEST_FAILED = {"error": "Request failed"}


def unauthorized_response(request: Optional[httpx.Request] = None) -> httpx.Response:
    """401 for a targeted request with no usable token."""
    return httpx.Response(
        401,
        headers={"WWW-Authenticate": "Bearer"},
        json=AUTHENTICATION_REQUIRED,
        request=request,
    )


def request_failed_response(request: Optional[httpx.Request] = None) -> httpx.Response:
    """500 for validation failures and unexpected internal errors."""
    return httpx.Response(500, json=REQUEST_FAILED, request=request)


def mock_success_response(request: Optional[httpx.Request] = None) -> httpx.Response:
    """Empty OData collection, returned instead of forwarding a mock-token request."""
    return httpx.Response(
        200,
        headers={"OData-Version": ODATA_VERSION},
        json={"value": []},
        request=request,
    )
