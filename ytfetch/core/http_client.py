"""
Async HTTP client wrapper around httpx with browser impersonation.

Failure policy:
- No retries and no back-off. A failed request aborts the operation that
  issued it.
- httpx network errors (timeouts, connect/read/write failures) are raised
  as TransportError with the original exception chained as the cause.
- Helpers that expect a specific status (get_bytes, post_bytes) raise
  TransportError carrying the observed status code.

Cancellation and deadlines are delegated to httpx: the per-request timeout
is the only timer in the stack.
"""

import logging
import random
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from ..config import get_settings
from ..errors import TransportError

logger = logging.getLogger(__name__)

# User-Agent pool for rotation
_USER_AGENTS = [
    (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    ),
    (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    ),
    (
        "Mozilla/5.0 (X11; Linux x86_64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    ),
    ("Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:133.0) Gecko/20100101 Firefox/133.0"),
]


def get_random_user_agent() -> str:
    return random.choice(_USER_AGENTS)


def redact_url(url: str) -> str:
    """Drop the query string, which can carry signatures, expiry stamps or API keys."""
    return url.split("?", 1)[0]


class HTTPClient:
    """
    Async HTTP client with configurable headers. Wraps httpx.AsyncClient.

    A custom ``transport`` can be supplied (e.g. ``httpx.MockTransport``);
    otherwise httpx's default connection pool is used.
    """

    def __init__(
        self,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
        follow_redirects: bool = True,
        impersonate_browser: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self._timeout = timeout or settings.request_timeout
        self._follow_redirects = follow_redirects
        self._transport = transport

        default_headers: dict[str, str] = {}
        if impersonate_browser:
            default_headers = {
                "User-Agent": settings.user_agent or get_random_user_agent(),
                "Accept-Language": "en-US,en;q=0.5",
            }

        if headers:
            default_headers.update(headers)

        self._default_headers = default_headers
        self._client: httpx.AsyncClient | None = None

    # ------------------------------------------------------------------
    # Client lifecycle
    # ------------------------------------------------------------------

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            kwargs: dict[str, Any] = {}
            if self._transport is not None:
                kwargs["transport"] = self._transport
            else:
                kwargs["http2"] = True
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(
                    self._timeout,
                    connect=10.0,
                    read=self._timeout,
                    write=10.0,
                    pool=10.0,
                ),
                follow_redirects=self._follow_redirects,
                headers=self._default_headers,
                **kwargs,
            )
        return self._client

    @property
    def is_closed(self) -> bool:
        return self._client is None or self._client.is_closed

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
        content: bytes | None = None,
        json: Any = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """Send a single request. Network failures become TransportError."""
        client = self._get_client()
        try:
            response = await client.request(
                method,
                url,
                headers=headers,
                params=params,
                content=content,
                json=json,
                timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.HTTPError as exc:
            logger.warning("%s on %s %s: %s", type(exc).__name__, method, redact_url(url), exc)
            raise TransportError(f"{method} {redact_url(url)} failed: {exc}") from exc

        logger.debug("%s %s -> %d", method, url, response.status_code)
        return response

    @asynccontextmanager
    async def stream(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
    ) -> AsyncIterator[httpx.Response]:
        """
        Open a streaming response. The connection is released when the
        context exits, whatever the reason.
        """
        client = self._get_client()
        try:
            async with client.stream(method, url, headers=headers) as response:
                logger.debug("%s %s (stream) -> %d", method, url, response.status_code)
                yield response
        except httpx.HTTPError as exc:
            logger.warning(
                "%s while streaming %s %s: %s", type(exc).__name__, method, redact_url(url), exc
            )
            raise TransportError(f"{method} {redact_url(url)} failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Convenience methods
    # ------------------------------------------------------------------

    async def get(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def get_bytes(self, url: str, **kwargs) -> bytes:
        """GET request returning the body; anything but 200 is a TransportError."""
        response = await self.get(url, **kwargs)
        if response.status_code != httpx.codes.OK:
            raise TransportError.unexpected_status(response.status_code, redact_url(url))
        return response.content

    async def post_bytes(self, url: str, **kwargs) -> bytes:
        """POST request returning the body; anything but 200 is a TransportError."""
        response = await self.post(url, **kwargs)
        if response.status_code != httpx.codes.OK:
            raise TransportError.unexpected_status(response.status_code, redact_url(url))
        return response.content

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()
