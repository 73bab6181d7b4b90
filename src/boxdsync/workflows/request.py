"""HTTP GET with manual, bounded redirect following.

The network itself sits behind a *transport*: any coroutine callable taking
``(url, headers)`` and returning an :class:`HttpResponse` without raising on
non-2xx statuses. :class:`AiohttpTransport` is the default implementation;
tests plug in fakes.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Mapping, Optional, Tuple
from urllib.parse import urljoin

import aiohttp

from .html_normalize import decode_bytes_auto, is_textual_content_type
from .sync_config import (
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_TIMEOUT_SECONDS,
    HDR_LOCATION,
    HTML_HEADERS,
    IMAGE_HEADERS,
    REDIRECT_STATUS_CODES,
)

logger = logging.getLogger(__name__)


@dataclass
class HttpResponse:
    """What a transport hands back for a single request."""

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    text: str = ""
    content: bytes = field(default=b"", repr=False)


Transport = Callable[[str, Mapping[str, str]], Awaitable[HttpResponse]]


class FetchError(RuntimeError):
    def __init__(self, url: str, status: int, *, kind: str = "fetch") -> None:
        verb = "download resource" if kind == "binary" else "fetch"
        super().__init__(f"Failed to {verb} {url}: status {status}")
        self.url = url
        self.status = status


class TooManyRedirectsError(RuntimeError):
    def __init__(self, url: str, max_redirects: int, *, kind: str = "fetch") -> None:
        target = "binary resource " if kind == "binary" else ""
        super().__init__(f"Too many redirects when fetching {target}{url} (limit {max_redirects})")
        self.url = url
        self.max_redirects = max_redirects


# Everything the fetch stage converts into "no data" instead of a row failure.
NETWORK_ERRORS: Tuple[type, ...] = (
    FetchError,
    TooManyRedirectsError,
    aiohttp.ClientError,
    asyncio.TimeoutError,
)


@dataclass(frozen=True)
class FetchedText:
    url: str
    text: str


@dataclass(frozen=True)
class FetchedBinary:
    url: str
    content: bytes = field(repr=False)


def get_header(headers: Optional[Mapping[str, str]], name: str) -> Optional[str]:
    """Case-insensitive header lookup; not every transport normalizes names."""

    if not headers:
        return None
    direct = headers.get(name)
    if direct:
        return direct
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def resolve_location(location: str, base_url: str) -> str:
    try:
        return urljoin(base_url, location.strip())
    except ValueError:
        return location


async def _request_with_redirects(
    transport: Transport,
    url: str,
    headers: Mapping[str, str],
    max_redirects: int,
    kind: str,
) -> Tuple[str, HttpResponse]:
    current = url
    for _hop in range(max(0, max_redirects) + 1):
        response = await transport(current, headers)
        location = get_header(response.headers, HDR_LOCATION)
        if response.status in REDIRECT_STATUS_CODES and location:
            target = resolve_location(location, current)
            logger.debug("Redirect %s from %s to %s", response.status, current, target)
            current = target
            continue
        if 200 <= response.status < 300:
            logger.debug("Fetched %s%s with status %s", "binary " if kind == "binary" else "", current, response.status)
            return current, response
        raise FetchError(current, response.status, kind=kind)
    raise TooManyRedirectsError(url, max_redirects, kind=kind)


async def fetch_text(
    transport: Transport,
    url: str,
    max_redirects: int = DEFAULT_MAX_REDIRECTS,
) -> FetchedText:
    """GET an HTML page, following up to ``max_redirects`` redirects."""

    final_url, response = await _request_with_redirects(transport, url, HTML_HEADERS, max_redirects, "text")
    text = response.text
    if not text and response.content:
        text = decode_bytes_auto(response.content, response.headers)
    return FetchedText(url=final_url, text=text)


async def fetch_bytes(
    transport: Transport,
    url: str,
    max_redirects: int = DEFAULT_MAX_REDIRECTS,
) -> FetchedBinary:
    """GET a binary asset (posters) with the same redirect handling as fetch_text."""

    final_url, response = await _request_with_redirects(transport, url, IMAGE_HEADERS, max_redirects, "binary")
    return FetchedBinary(url=final_url, content=response.content)


class AiohttpTransport:
    """Default transport: one aiohttp session, redirects left to the caller.

    Use as an async context manager so the session is closed::

        async with AiohttpTransport(timeout=30) as transport:
            page = await fetch_text(transport, url)
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "AiohttpTransport":
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def __call__(self, url: str, headers: Mapping[str, str]) -> HttpResponse:
        if self._session is None:
            raise RuntimeError("AiohttpTransport used outside of its async context")
        async with self._session.get(url, headers=dict(headers), allow_redirects=False) as resp:
            body = await resp.read()
            response_headers: Dict[str, str] = {key: value for key, value in resp.headers.items()}
            text = decode_bytes_auto(body, response_headers) if is_textual_content_type(response_headers) else ""
            return HttpResponse(status=resp.status, headers=response_headers, text=text, content=body)


__all__ = [
    "AiohttpTransport",
    "FetchError",
    "FetchedBinary",
    "FetchedText",
    "HttpResponse",
    "NETWORK_ERRORS",
    "TooManyRedirectsError",
    "Transport",
    "fetch_bytes",
    "fetch_text",
    "get_header",
    "resolve_location",
]
