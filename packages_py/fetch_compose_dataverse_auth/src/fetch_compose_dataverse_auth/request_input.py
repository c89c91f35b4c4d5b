"""
Request input shapes accepted by fetch().

A request can be named by a plain string, an ``httpx.URL`` or a prepared
``httpx.Request``. Each shape has one constructor, and
``normalize_request_input`` is the single place that dispatches on type.
"""
from dataclasses import dataclass
from typing import Any, Optional

import httpx

STRING = "string"
URL = "url"
REQUEST = "request"


@dataclass(frozen=True)
class RequestInput:
    """Tagged request input. ``url`` is always the string form."""

    kind: str
    url: str
    request: Optional[httpx.Request] = None

    @classmethod
    def from_string(cls, value: str) -> "RequestInput":
        return cls(kind=STRING, url=value)

    @classmethod
    def from_url(cls, value: httpx.URL) -> "RequestInput":
        return cls(kind=URL, url=str(value))

    @classmethod
    def from_request(cls, value: httpx.Request) -> "RequestInput":
        return cls(kind=REQUEST, url=str(value.url), request=value)

    def to_request(
        self,
        method: str = "GET",
        **request_kwargs: Any,
    ) -> httpx.Request:
        """
        Build the ``httpx.Request`` to send.

        A request-shaped input is returned as-is; ``method`` and
        ``request_kwargs`` only apply to string and URL inputs.
        """
        if self.request is not None:
            return self.request
        return httpx.Request(method, self.url, **request_kwargs)


def normalize_request_input(value: Any) -> RequestInput:
    """
    Wrap ``value`` in a RequestInput.

    Raises:
        TypeError: For anything other than str, httpx.URL, httpx.Request
            or RequestInput
    """
    if isinstance(value, RequestInput):
        return value
    if isinstance(value, str):
        return RequestInput.from_string(value)
    if isinstance(value, httpx.URL):
        return RequestInput.from_url(value)
    if isinstance(value, httpx.Request):
        return RequestInput.from_request(value)
    raise TypeError(
        f"Unsupported request input type: {type(value).__name__}. "
        "Expected str, httpx.URL or httpx.Request"
    )
