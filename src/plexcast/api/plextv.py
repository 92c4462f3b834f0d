"""plex.tv account service client.

Signs a user in and lists the servers their account can reach. Only the
two calls the configurator needs are implemented.
"""

import logging
import uuid
from typing import Any

import httpx

from plexcast import __version__
from plexcast.errors import AuthError, NetworkEnumerationError
from plexcast.models.credentials import Credentials
from plexcast.models.server import Endpoint, Server

logger = logging.getLogger(__name__)

PLEX_TV_URL = "https://plex.tv"
SIGN_IN_PATH = "/users/sign_in.json"
RESOURCES_PATH = "/api/v2/resources"

# Client identification sent with every request
PRODUCT_NAME = "PlexCast"

# Request timeout in seconds
REQUEST_TIMEOUT = 10.0


def _parse_endpoint(data: dict[str, Any]) -> Endpoint | None:
    """Build an Endpoint from a resource connection entry."""
    uri = data.get("uri")
    if not uri:
        return None
    try:
        port = int(data.get("port") or 0)
    except (TypeError, ValueError):
        port = 0
    return Endpoint(
        uri=str(uri),
        local=bool(data.get("local", False)),
        protocol=str(data.get("protocol") or ""),
        address=str(data.get("address") or ""),
        port=port,
        relay=bool(data.get("relay", False)),
    )


def _parse_servers(data: Any) -> list[Server]:
    """Build Server models from a resources response.

    Resources that do not provide "server" (players, controllers) are skipped.
    """
    if not isinstance(data, list):
        raise NetworkEnumerationError("Unexpected resources response from plex.tv")

    servers: list[Server] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        provides = str(item.get("provides") or "").split(",")
        if "server" not in provides:
            continue

        endpoints = tuple(
            endpoint
            for endpoint in (_parse_endpoint(c) for c in item.get("connections") or [])
            if endpoint is not None
        )
        servers.append(
            Server(
                name=str(item.get("name") or ""),
                source_title=str(item.get("sourceTitle") or ""),
                client_identifier=str(item.get("clientIdentifier") or ""),
                endpoints=endpoints,
            )
        )
    return servers


class PlexTvClient:
    """Async client for the plex.tv account service.

    Example:
        async with PlexTvClient() as plex:
            credentials = await plex.sign_in("user", "secret")
            servers = await plex.get_servers(credentials)
    """

    def __init__(
        self,
        base_url: str = PLEX_TV_URL,
        client_identifier: str | None = None,
        timeout: float = REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Account service base URL.
            client_identifier: Stable identifier for this client (random if None).
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self._client_identifier = client_identifier or str(uuid.uuid4())
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Accept": "application/json",
                "X-Plex-Product": PRODUCT_NAME,
                "X-Plex-Version": __version__,
                "X-Plex-Client-Identifier": self._client_identifier,
            },
        )

    async def __aenter__(self) -> "PlexTvClient":
        """Enter async context."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Exit async context (close HTTP client)."""
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._http.aclose()

    async def sign_in(self, username: str, password: str) -> Credentials:
        """Sign in with username and password.

        Args:
            username: Plex username or email.
            password: Plex password.

        Returns:
            Credentials holding the account's auth token.

        Raises:
            AuthError: If sign-in is rejected or the service cannot be reached.
        """
        try:
            response = await self._http.post(SIGN_IN_PATH, auth=(username, password))
        except httpx.HTTPError as e:
            raise AuthError(f"could not reach plex.tv: {e}") from e

        if response.status_code in (httpx.codes.UNAUTHORIZED, httpx.codes.FORBIDDEN):
            raise AuthError("invalid username or password")
        if response.is_error:
            raise AuthError(f"plex.tv returned HTTP {response.status_code}")

        try:
            user = response.json()["user"]
            token = user["authToken"]
        except (ValueError, KeyError, TypeError) as e:
            raise AuthError("unexpected sign-in response from plex.tv") from e

        logger.debug("Signed in to plex.tv as %s", user.get("username") or username)
        return Credentials(token=str(token), username=str(user.get("username") or username))

    async def get_servers(self, credentials: Credentials) -> list[Server]:
        """List the servers available to an account.

        Args:
            credentials: Credentials from sign_in().

        Returns:
            Servers with their candidate endpoints, in service order.

        Raises:
            NetworkEnumerationError: If the list cannot be fetched or parsed.
        """
        try:
            response = await self._http.get(
                RESOURCES_PATH,
                params={"includeHttps": 1, "includeRelay": 1},
                headers={"X-Plex-Token": credentials.token},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise NetworkEnumerationError(
                f"plex.tv returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise NetworkEnumerationError(f"could not reach plex.tv: {e}") from e
        except ValueError as e:
            raise NetworkEnumerationError("invalid resources response from plex.tv") from e

        servers = _parse_servers(data)
        logger.debug("plex.tv listed %d server(s)", len(servers))
        return servers
