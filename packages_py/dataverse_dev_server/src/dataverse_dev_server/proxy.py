"""
Reverse-proxy rules for the Dataverse Web API prefix.

The rules reproduce the request classifier's prefix match as static regex
routes, registered twice (with and without the leading slash):

    {
        "^/api/data": ProxyRule("^/api/data", "https://org.crm.dynamics.com"),
        "^api/data": ProxyRule("^api/data", "https://org.crm.dynamics.com"),
    }

``DataverseProxyMiddleware`` forwards any matching request to the rule's
target with httpx.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional
from urllib.parse import urlsplit

import httpx
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from dataverse_auth import sanitize, sanitize_url

logger = logging.getLogger(__name__)

DEFAULT_PROXY_PATH = "^/api/data"
PROXY_TIMEOUT_SECONDS = 60.0

# Connection-level headers that must not be forwarded (RFC 9110 7.6.1)
HOP_BY_HOP_HEADERS = frozenset(
    [
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "proxy-connection",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    ]
)

# Set by httpx on the decoded body, so stale after decoding
_RESPONSE_DROP_HEADERS = HOP_BY_HOP_HEADERS | {"content-encoding", "content-length"}

# Regex syntax that makes a proxy path more than a literal prefix
_PATTERN_SYNTAX = re.compile(r"[*+?\[\](){}|\\$]")


@dataclass(frozen=True)
class ProxyRule:
    """One regex route to the Dataverse environment."""

    pattern: str
    target: str
    change_origin: bool = True
    secure: bool = True
    headers: Mapping[str, str] = field(default_factory=dict)

    def matches(self, path: str) -> bool:
        return re.match(self.pattern, path) is not None


def _unslashed(proxy_path: str) -> Optional[str]:
    """``^/api/data`` -> ``^api/data``; None when there is no leading slash."""
    if proxy_path.startswith("^/"):
        return "^" + proxy_path[2:]
    return None


def path_prefix_from_proxy_path(proxy_path: str) -> str:
    """
    Literal path prefix behind a proxy path: ``^/custom/api/`` -> ``/custom/api``.

    Raises:
        ValueError: If the proxy path is empty or uses regex syntax beyond ``^``
    """
    literal = proxy_path[1:] if proxy_path.startswith("^") else proxy_path
    if not literal.strip("/") or _PATTERN_SYNTAX.search(literal):
        raise ValueError(
            f"Cannot derive a path prefix from proxy_path {proxy_path!r}; pass path_prefix explicitly"
        )
    return "/" + literal.strip("/")


def _build_rule(pattern: str, target: str, custom_proxy_options: Mapping[str, Any]) -> ProxyRule:
    unknown = set(custom_proxy_options) - {"change_origin", "secure", "headers"}
    if unknown:
        raise ValueError(f"Unsupported proxy options: {sorted(unknown)}")
    return ProxyRule(
        pattern=pattern,
        target=target.rstrip("/"),
        change_origin=custom_proxy_options.get("change_origin", True),
        secure=custom_proxy_options.get("secure", True),
        headers=dict(custom_proxy_options.get("headers") or {}),
    )


def create_dataverse_proxy(
    dataverse_url: str,
    proxy_path: str = DEFAULT_PROXY_PATH,
    custom_proxy_options: Optional[Mapping[str, Any]] = None,
) -> Dict[str, ProxyRule]:
    """
    Proxy rules for the API prefix, in slash and no-slash forms.

    Args:
        dataverse_url: Upstream environment URL
        proxy_path: Route regex. Default: ``^/api/data``
        custom_proxy_options: ``change_origin``, ``secure`` and extra ``headers``

    Returns:
        Rules keyed by pattern
    """
    options = custom_proxy_options or {}
    rules = {proxy_path: _build_rule(proxy_path, dataverse_url, options)}
    alternate = _unslashed(proxy_path)
    if alternate is not None:
        rules[alternate] = _build_rule(alternate, dataverse_url, options)
    return rules


def create_advanced_dataverse_proxy(
    dataverse_url: str,
    proxy_path: str = DEFAULT_PROXY_PATH,
    custom_proxy_options: Optional[Mapping[str, Any]] = None,
    additional_paths: Iterable[str] = (),
) -> Dict[str, ProxyRule]:
    """
    create_dataverse_proxy() plus rules for extra paths on the same target.

    Example:
        create_advanced_dataverse_proxy(url, additional_paths=["/api/custom"])
        # keys: ^/api/data, ^api/data, ^/api/custom
    """
    options = custom_proxy_options or {}
    rules = create_dataverse_proxy(dataverse_url, proxy_path, options)
    for path in additional_paths:
        pattern = path if path.startswith("^") else f"^{path}"
        rules[pattern] = _build_rule(pattern, dataverse_url, options)
    return rules


class DataverseProxyMiddleware(BaseHTTPMiddleware):
    """
    Forward requests matching a proxy rule to the Dataverse environment.

    Example:
        app.add_middleware(
            DataverseProxyMiddleware,
            rules=list(create_dataverse_proxy(url).values()),
        )
    """

    def __init__(
        self,
        app: ASGIApp,
        rules: Iterable[ProxyRule],
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = PROXY_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(app)
        self._rules: List[ProxyRule] = list(rules)
        self._transport = transport
        self._timeout = timeout

    def match(self, path: str) -> Optional[ProxyRule]:
        for rule in self._rules:
            if rule.matches(path):
                return rule
        return None

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rule = self.match(request.url.path)
        if rule is None:
            return await call_next(request)
        return await self._forward(request, rule)

    async def _forward(self, request: Request, rule: ProxyRule) -> Response:
        url = rule.target + request.url.path
        if request.url.query:
            url = f"{url}?{request.url.query}"

        headers = {
            name: value
            for name, value in request.headers.items()
            if name.lower() not in HOP_BY_HOP_HEADERS
        }
        if rule.change_origin:
            headers.pop("host", None)
            headers["host"] = urlsplit(rule.target).netloc
        headers.update(rule.headers)

        body = await request.body()
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                verify=rule.secure,
                timeout=self._timeout,
            ) as client:
                upstream = await client.request(
                    request.method,
                    url,
                    headers=headers,
                    content=body or None,
                )
        except httpx.HTTPError as e:
            logger.error(f"DataverseProxyMiddleware: upstream {sanitize_url(url)} failed: {sanitize(e)}")
            return JSONResponse({"error": "Bad gateway"}, status_code=502)

        logger.debug(
            f"DataverseProxyMiddleware: {request.method} {sanitize_url(url)} -> {upstream.status_code}"
        )
        response_headers = {
            name: value
            for name, value in upstream.headers.items()
            if name.lower() not in _RESPONSE_DROP_HEADERS
        }
        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            headers=response_headers,
        )
