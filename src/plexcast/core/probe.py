"""HTTP reachability probe for Plex server endpoints.

Note: a probe only answers "did the endpoint respond in time". Some servers
answer 401 without a token; that still counts as reachable since the
transport path works.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from plexcast.models.server import Endpoint

logger = logging.getLogger(__name__)

# Default per-probe timeout in seconds
PROBE_TIMEOUT = 5.0

# Status codes at or above this count as unreachable
_SERVER_ERROR = 500

# A probe answers "is this endpoint responsive now" within a timeout in seconds
Probe = Callable[[Endpoint, float], Awaitable[bool]]


class EndpointProber:
    """Probe endpoints with a single shared HTTP client.

    The client is process-scoped and safe to share between concurrent probe
    tasks. Each probe is exactly one GET request with no retries.

    Example:
        async with EndpointProber(token=credentials.token) as prober:
            if await prober.probe(endpoint, 2.0):
                print(f"{endpoint.uri} is up")
    """

    def __init__(
        self,
        timeout: float = PROBE_TIMEOUT,
        token: str = "",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the prober.

        Args:
            timeout: Upper bound for any single probe in seconds.
            token: Optional Plex token sent as X-Plex-Token.
            transport: Optional httpx transport (used by tests).
        """
        self._timeout = timeout
        headers = {"X-Plex-Token": token} if token else {}
        self._http = httpx.AsyncClient(
            timeout=timeout,
            headers=headers,
            transport=transport,
            follow_redirects=False,
        )

    @property
    def timeout(self) -> float:
        """Return the default per-probe timeout in seconds."""
        return self._timeout

    async def __aenter__(self) -> "EndpointProber":
        """Enter async context."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Exit async context (close HTTP client)."""
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._http.aclose()

    async def probe(self, endpoint: Endpoint, timeout: float | None = None) -> bool:
        """Check whether an endpoint answers its root URI in time.

        Args:
            endpoint: Endpoint to probe.
            timeout: Seconds left until the caller's deadline. Capped at the
                prober's default timeout.

        Returns:
            True if a response with a non-5xx status arrived in time.
        """
        budget = self._timeout if timeout is None else min(timeout, self._timeout)
        if budget <= 0:
            return False

        # httpx timeouts apply per phase; the whole request shares one budget
        try:
            async with asyncio.timeout(budget):
                response = await self._http.get(endpoint.uri, timeout=budget)
        except (TimeoutError, httpx.TimeoutException):
            logger.debug("Probe of %s timed out after %.1fs", endpoint.uri, budget)
            return False
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug("Probe of %s failed: %s", endpoint.uri, e)
            return False

        if response.status_code >= _SERVER_ERROR:
            logger.debug("Probe of %s returned HTTP %d", endpoint.uri, response.status_code)
            return False
        return True
