"""
Server-side token lifecycle and browser injection for the dev server.

The browser never talks to Azure. The dev server keeps the token (resolved
through the same chain and cache as setup_dataverse()) and exposes it on a
same-origin endpoint. A script injected into ``index.html`` wraps
``window.fetch`` so page requests under the API prefix pick it up.
"""
import asyncio
import json
import logging
import re
from contextlib import asynccontextmanager
from string import Template
from typing import Any, AsyncIterator, Iterable, Optional

from fastapi import APIRouter
from starlette.responses import PlainTextResponse, Response

from dataverse_auth import (
    DEFAULT_PATH_PREFIX,
    DEFAULT_TOKEN_REFRESH_INTERVAL_MS,
    TOKEN_ENDPOINT_PATH,
    ConsoleReporter,
    assert_non_production,
    sanitize,
)
from fetch_compose_dataverse_auth import TokenSource

logger = logging.getLogger(__name__)

DEVELOPMENT_MODE = "development"
NO_TOKEN_BODY = "No token available"

_HEAD_TAG = re.compile(r"<head(\s[^>]*)?>", re.IGNORECASE)

_AUTH_SCRIPT = Template(
    """(function () {
  var TOKEN_ENDPOINT = $token_endpoint;
  var PATH_PREFIX = $path_prefix;
  var originalFetch = window.fetch.bind(window);

  function requestUrl(input) {
    if (typeof input === "string") return input;
    if (input instanceof URL) return input.href;
    return input && input.url ? input.url : "";
  }

  function isDataverseRequest(url) {
    if (url.indexOf(PATH_PREFIX) === 0) return true;
    if (url.indexOf(PATH_PREFIX.slice(1)) === 0) return true;
    try {
      var parsed = new URL(url, window.location.origin);
      return parsed.origin === window.location.origin &&
        parsed.pathname.indexOf(PATH_PREFIX) === 0;
    } catch (e) {
      return false;
    }
  }

  async function getToken() {
    try {
      var response = await originalFetch(TOKEN_ENDPOINT, { cache: "no-store" });
      if (!response.ok) return null;
      var token = (await response.text()).trim();
      return token || null;
    } catch (e) {
      console.warn("[dataverse] token endpoint unavailable");
      return null;
    }
  }

  window.fetch = async function (input, init) {
    var url = requestUrl(input);
    if (!isDataverseRequest(url)) return originalFetch(input, init);

    var token = await getToken();
    var baseHeaders = (init && init.headers) ||
      (input instanceof Request ? input.headers : undefined);
    var headers = new Headers(baseHeaders);
    if (token) headers.set("Authorization", "Bearer " + token);
    headers.set("OData-MaxVersion", "4.0");
    headers.set("OData-Version", "4.0");
    headers.set("Accept", "application/json");
    headers.set("Content-Type", "application/json; charset=utf-8");

    return originalFetch(input, Object.assign({}, init, { headers: headers }));
  };
})();"""
)


class DataverseAuthService:
    """
    Token endpoint, refresh loop and HTML injection for one dev server.

    Example:
        service = DataverseAuthService("https://org.crm.dynamics.com")
        app = FastAPI(lifespan=service.lifespan)
        app.include_router(service.router())
    """

    def __init__(
        self,
        dataverse_url: str,
        *,
        token_refresh_interval_ms: int = DEFAULT_TOKEN_REFRESH_INTERVAL_MS,
        enable_console_logging: bool = True,
        mock_token: Optional[str] = None,
        allowed_domains: Optional[Iterable[str]] = None,
        resolver: Optional[Any] = None,
        token_endpoint: str = TOKEN_ENDPOINT_PATH,
        path_prefix: str = DEFAULT_PATH_PREFIX,
    ) -> None:
        self._dataverse_url = dataverse_url.rstrip("/")
        self._refresh_interval_seconds = token_refresh_interval_ms / 1000.0
        self._token_endpoint = token_endpoint
        self._path_prefix = path_prefix
        self._reporter = ConsoleReporter(logger, enabled=enable_console_logging, title="dataverse")
        self._tokens = TokenSource(
            self._dataverse_url,
            resolver=resolver,
            mock_token=mock_token,
            allowed_domains=allowed_domains,
        )
        self._refresh_task: Optional[asyncio.Task] = None
        self._started = False

    @property
    def dataverse_url(self) -> str:
        return self._dataverse_url

    @property
    def token_endpoint(self) -> str:
        return self._token_endpoint

    @property
    def token_source(self) -> TokenSource:
        return self._tokens

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        """
        Resolve the first token and start refreshing.

        Raises:
            ProductionEnvironmentError: If the environment is marked as production
        """
        if self._started:
            return
        assert_non_production()
        self._started = True

        if self._tokens.uses_mock_token:
            self._reporter.info("Using mock token for the token endpoint")
            return

        await self._refresh_once()
        self._refresh_task = asyncio.get_running_loop().create_task(self._refresh_loop())
        self._reporter.success(f"Token refresh every {int(self._refresh_interval_seconds)}s")

    async def stop(self) -> None:
        """Stop refreshing and wipe the cached token."""
        if not self._started:
            return
        self._started = False
        self._tokens.invalidate()
        task, self._refresh_task = self._refresh_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _refresh_once(self) -> None:
        try:
            token = await self._tokens.refresh()
        except Exception as e:
            self._reporter.error(f"Token refresh failed: {sanitize(e)}")
            return
        if token:
            self._reporter.success("Dataverse token ready")
        else:
            self._reporter.warning("Could not acquire a Dataverse token (try `az login`)")

    async def _refresh_loop(self) -> None:
        while True:
            await asyncio.sleep(self._refresh_interval_seconds)
            await self._refresh_once()

    @asynccontextmanager
    async def lifespan(self, app: Any) -> AsyncIterator[None]:
        """FastAPI lifespan: start on startup, stop on shutdown."""
        await self.start()
        app.state.dataverse_auth = self
        try:
            yield
        finally:
            await self.stop()

    def current_token(self) -> Optional[str]:
        return self._tokens.peek()

    def token_response(self) -> Response:
        """200 text/plain with the token, or 401 ``No token available``."""
        token = self.current_token()
        if not token:
            return PlainTextResponse(NO_TOKEN_BODY, status_code=401)
        return PlainTextResponse(token, headers={"Cache-Control": "no-store"})

    def router(self) -> APIRouter:
        """Router serving GET on the token endpoint."""
        router = APIRouter()

        @router.get(self._token_endpoint, include_in_schema=False)
        async def dataverse_token() -> Response:
            return self.token_response()

        return router

    def render_auth_script(self) -> str:
        """Browser snippet that authenticates page fetches under the prefix."""
        return _AUTH_SCRIPT.substitute(
            token_endpoint=json.dumps(self._token_endpoint),
            path_prefix=json.dumps(self._path_prefix),
        )

    def transform_index_html(self, html: str, mode: str = DEVELOPMENT_MODE) -> str:
        """Inject the auth script right after ``<head>``, in development mode only."""
        if mode != DEVELOPMENT_MODE:
            return html
        match = _HEAD_TAG.search(html)
        if match is None:
            logger.warning("transform_index_html: no <head> tag, auth script not injected")
            return html
        script = f"<script>{self.render_auth_script()}</script>"
        return html[: match.end()] + script + html[match.end():]
