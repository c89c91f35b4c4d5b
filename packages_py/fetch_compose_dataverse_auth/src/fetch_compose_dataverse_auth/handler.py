"""
Per-request interception logic shared by every request surface.

For each request:
1. Classify the URL. A validation failure becomes a 500 response.
2. Requests outside the API prefix go to ``send`` untouched.
3. No token available: 401 with ``WWW-Authenticate: Bearer``.
4. Attach the bearer and OData headers.
5. Mock token: canned 200 ``{"value": []}``. Real token: forward.

Nothing raised while handling a targeted request crosses this boundary;
the caller always gets a response.
"""
import logging
from typing import Any, Awaitable, Callable, Iterable, Optional

import httpx

from dataverse_auth import (
    DEFAULT_PATH_PREFIX,
    ConfigurationError,
    ConsoleReporter,
    classify_request,
    is_valid_dataverse_url,
    normalize_path_prefix,
    sanitize,
    sanitize_url,
)

from .responses import (
    ODATA_VERSION,
    mock_success_response,
    request_failed_response,
    unauthorized_response,
)
from .token_source import TokenSource

logger = logging.getLogger(__name__)

# Set on requests this package has already prepared, so stacked
# interceptors (opt-in transport plus global patch) run once.
HANDLED_EXTENSION = "dataverse_auth_handled"

AsyncSend = Callable[[httpx.Request], Awaitable[httpx.Response]]
SyncSend = Callable[[httpx.Request], httpx.Response]


def build_auth_headers(token: str) -> dict:
    """Headers attached to every targeted request."""
    return {
        "Authorization": f"Bearer {token}",
        "OData-MaxVersion": ODATA_VERSION,
        "OData-Version": ODATA_VERSION,
        "Accept": "application/json",
        "Content-Type": "application/json; charset=utf-8",
    }


def is_handled(request: httpx.Request) -> bool:
    return bool(request.extensions.get(HANDLED_EXTENSION))


class DataverseRequestHandler:
    """
    Classify, authenticate and route a single request.

    Example:
        handler = DataverseRequestHandler(
            "https://org.crm.dynamics.com",
            TokenSource("https://org.crm.dynamics.com", mock_token="mock-token-123"),
        )
        response = await handler.handle_async(request, inner.handle_async_request)
    """

    def __init__(
        self,
        dataverse_url: str,
        token_source: TokenSource,
        *,
        path_prefix: str = DEFAULT_PATH_PREFIX,
        reporter: Optional[ConsoleReporter] = None,
    ) -> None:
        self._dataverse_url = dataverse_url.rstrip("/")
        self._tokens = token_source
        self._path_prefix = path_prefix
        self._reporter = reporter or ConsoleReporter(logger, enabled=False)

    @property
    def dataverse_url(self) -> str:
        return self._dataverse_url

    @property
    def path_prefix(self) -> str:
        return self._path_prefix

    @property
    def token_source(self) -> TokenSource:
        return self._tokens

    async def handle_async(self, request: httpx.Request, send: AsyncSend) -> httpx.Response:
        """Async path: resolves a token on demand when the cache is empty."""
        if is_handled(request):
            return await send(request)

        try:
            classification = classify_request(
                str(request.url), self._dataverse_url, self._path_prefix
            )
        except Exception as e:
            return self._failed(request, e)

        if not classification.is_target_api:
            return await send(request)

        try:
            token = await self._tokens.get()
            if not token:
                return self._unauthorized(request)

            await request.aread()
            prepared = self._prepare(request, classification.rewritten_url, token)
            if self._tokens.is_mock(token):
                logger.debug("handle_async: mock token, returning empty collection")
                return mock_success_response(prepared)

            logger.debug(f"handle_async: forwarding to {sanitize_url(str(prepared.url))}")
            return await send(prepared)
        except Exception as e:
            return self._failed(request, e)

    def handle_sync(self, request: httpx.Request, send: SyncSend) -> httpx.Response:
        """
        Sync path: uses the cached or mock token only.

        A sync caller cannot wait on credential resolution, so an empty cache
        yields 401 until the async side has filled it.
        """
        if is_handled(request):
            return send(request)

        try:
            classification = classify_request(
                str(request.url), self._dataverse_url, self._path_prefix
            )
        except Exception as e:
            return self._failed(request, e)

        if not classification.is_target_api:
            return send(request)

        try:
            token = self._tokens.peek()
            if not token:
                return self._unauthorized(request)

            request.read()
            prepared = self._prepare(request, classification.rewritten_url, token)
            if self._tokens.is_mock(token):
                logger.debug("handle_sync: mock token, returning empty collection")
                return mock_success_response(prepared)

            logger.debug(f"handle_sync: forwarding to {sanitize_url(str(prepared.url))}")
            return send(prepared)
        except Exception as e:
            return self._failed(request, e)

    def _prepare(self, request: httpx.Request, url: str, token: str) -> httpx.Request:
        headers = httpx.Headers(request.headers)
        if "host" in headers:
            del headers["host"]
        headers.update(build_auth_headers(token))

        extensions = dict(request.extensions)
        extensions[HANDLED_EXTENSION] = True

        return httpx.Request(
            request.method,
            url,
            headers=headers,
            content=request.content or None,
            extensions=extensions,
        )

    def _unauthorized(self, request: httpx.Request) -> httpx.Response:
        self._reporter.warning("No authentication token available for dataverse request")
        return unauthorized_response(request)

    def _failed(self, request: httpx.Request, error: Exception) -> httpx.Response:
        self._reporter.error(f"Secure fetch error: {sanitize(error)}")
        return request_failed_response(request)


def create_request_handler(
    dataverse_url: str,
    *,
    mock_token: Optional[str] = None,
    resolver: Optional[Any] = None,
    allowed_domains: Optional[Iterable[str]] = None,
    path_prefix: str = DEFAULT_PATH_PREFIX,
    enable_console_logging: bool = False,
) -> DataverseRequestHandler:
    """
    Build a standalone handler, for transports used without setup_dataverse().

    Raises:
        ConfigurationError: If dataverse_url is not an allowed HTTPS Dataverse URL
    """
    if not is_valid_dataverse_url(dataverse_url, allowed_domains):
        raise ConfigurationError(
            f"Invalid dataverse URL: {sanitize_url(dataverse_url)}. "
            "Must be a valid HTTPS dataverse domain."
        )
    dataverse_url = dataverse_url.rstrip("/")
    token_source = TokenSource(
        dataverse_url,
        resolver=resolver,
        mock_token=mock_token,
        allowed_domains=allowed_domains,
    )
    return DataverseRequestHandler(
        dataverse_url,
        token_source,
        path_prefix=normalize_path_prefix(path_prefix),
        reporter=ConsoleReporter(logger, enabled=enable_console_logging),
    )
