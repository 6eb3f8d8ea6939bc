"""
mockbridge HTTP Transport

The single HTTP client shared by the adapters. It is backed by
httpx.AsyncClient; the backend is fixed for the package and never switched
at runtime.

One client keeps one connection pool. Connections are kept alive for a day
by default so a test run issuing many short admin requests does not pay for
reconnects. Pooled connections are tied to the event loop that opened them,
so a call made from a different loop (e.g. a second asyncio.run()) starts a
fresh pool.
"""

import asyncio
import logging
from typing import Dict, Optional, Tuple

import httpx

from ..config import DEFAULT_KEEPALIVE_SECONDS
from ..errors import TransportError, UnexpectedStatusError

ADMIN_PREFIX = "/__httpmock__"
PING_PATH = f"{ADMIN_PREFIX}/ping"

logger = logging.getLogger("mockbridge.adapter")


class InternalHttpClient:
    """
    Executes single HTTP request/response cycles against a mock server.

    Safe for concurrent requests issued from the same event loop; they share
    the connection pool.

    Example:
        client = InternalHttpClient()
        status, body = await client.execute_request("GET", "http://127.0.0.1:5000/__httpmock__/ping")
    """

    def __init__(
        self,
        keepalive_seconds: float = DEFAULT_KEEPALIVE_SECONDS,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the client and its connection pool.

        Args:
            keepalive_seconds: How long idle pooled connections are kept
            timeout: Request timeout in seconds (None keeps the httpx default)
            transport: Alternative httpx transport, e.g. httpx.MockTransport in tests
        """
        limits = httpx.Limits(keepalive_expiry=keepalive_seconds)
        self._client_kwargs = {'limits': limits, 'transport': transport}
        if timeout is not None:
            self._client_kwargs['timeout'] = timeout

        self._client = httpx.AsyncClient(**self._client_kwargs)
        # Event loop owning the pooled connections, bound on first use
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def _client_for_running_loop(self) -> httpx.AsyncClient:
        """Return the pooled client, rebuilding it when called from a new event loop."""
        loop = asyncio.get_running_loop()
        if self._loop is not loop:
            if self._loop is not None:
                # Connections pooled on the previous loop cannot be reused
                logger.debug("Event loop changed, creating a new connection pool")
                self._client = httpx.AsyncClient(**self._client_kwargs)
            self._loop = loop
        return self._client

    async def execute_request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[str] = None
    ) -> Tuple[int, str]:
        """
        Send one request and read the complete response.

        Args:
            method: HTTP method
            url: Absolute request URL
            headers: Request headers
            body: Request body, sent UTF-8 encoded

        Returns:
            Tuple of (status code, response body text)

        Raises:
            TransportError: If the request could not be sent or the response not read
        """
        content = body.encode('utf-8') if body is not None else None
        logger.debug(f"{method} {url}")

        try:
            client = self._client_for_running_loop()
            response = await client.request(method, url, headers=headers, content=content)
            text = response.text
        except httpx.HTTPError as err:
            raise TransportError(f"cannot send request to mock server: {err}") from err

        logger.debug(f"{method} {url} -> {response.status_code}")
        return response.status_code, text

    async def http_ping(self, address: str) -> None:
        """
        Check that the mock server at `address` (host:port) answers its health probe.

        Raises:
            TransportError: If the server cannot be reached
            UnexpectedStatusError: If the probe does not answer with 200
        """
        status, body = await self.execute_request("GET", f"http://{address}{PING_PATH}")

        if status != 200:
            raise UnexpectedStatusError(
                f"Could not ping mock server. Mock server response: status = {status}, message = {body}",
                status,
                body
            )

    async def aclose(self) -> None:
        """Close the connection pool."""
        await self._client.aclose()
