"""Server enumeration: find a reachable endpoint for every account server."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from plexcast.core.probe import Probe
from plexcast.core.selector import SERVER_SCAN_TIMEOUT, select_best
from plexcast.errors import NetworkEnumerationError, NoReachableServerError
from plexcast.models.credentials import Credentials
from plexcast.models.server import Endpoint, ReachableEndpoint, Server

logger = logging.getLogger(__name__)

STATUS_UP = "Up"
STATUS_DOWN = "Down"
STATUS_TIMEOUT = "Timeout"


class ServerDirectory(Protocol):
    """Anything that can list the servers of an account (e.g. PlexTvClient)."""

    async def get_servers(self, credentials: Credentials) -> list[Server]:
        """Return the servers available to the account."""
        ...


@dataclass(frozen=True, slots=True)
class EndpointStatus:
    """Probe outcome for one endpoint of one server.

    Attributes:
        server: The server.
        endpoint: The probed endpoint.
        status: "Up", "Down", or "Timeout" if the probe was still running.
    """

    server: Server
    endpoint: Endpoint
    status: str


async def fetch_servers(directory: ServerDirectory, credentials: Credentials) -> list[Server]:
    """Fetch the account's servers, wrapping unexpected failures.

    Raises:
        NetworkEnumerationError: If the server list cannot be fetched.
    """
    try:
        return await directory.get_servers(credentials)
    except NetworkEnumerationError:
        raise
    except Exception as e:
        raise NetworkEnumerationError(str(e) or type(e).__name__) from e


async def select_all(
    servers: list[Server],
    probe: Probe,
    timeout: float = SERVER_SCAN_TIMEOUT,
) -> list[ReachableEndpoint]:
    """Run best-endpoint selection for every server concurrently.

    Returns once every per-server race has finished or hit the deadline.
    A server whose selection fails is logged and left out.
    """
    results = await asyncio.gather(
        *(select_best(server, probe, timeout) for server in servers),
        return_exceptions=True,
    )

    reachable: list[ReachableEndpoint] = []
    for server, result in zip(servers, results, strict=True):
        if isinstance(result, BaseException):
            logger.debug("Selection for %s failed: %r", server.name, result)
        elif result is not None:
            reachable.append(result)
    return reachable


async def enumerate_servers(
    directory: ServerDirectory,
    credentials: Credentials,
    probe: Probe,
    timeout: float = SERVER_SCAN_TIMEOUT,
) -> list[ReachableEndpoint]:
    """List the account's servers and keep the ones reachable from here.

    Args:
        directory: Account service client.
        credentials: Signed-in account credentials.
        probe: Probe callable shared by all endpoint races.
        timeout: Seconds allowed for endpoint probing.

    Returns:
        One ReachableEndpoint per reachable server, in no particular order.

    Raises:
        NetworkEnumerationError: If the server list cannot be fetched.
        NoReachableServerError: If no server answered before the deadline.
    """
    servers = await fetch_servers(directory, credentials)
    logger.info("Probing %d server(s) for %.1fs", len(servers), timeout)

    reachable = await select_all(servers, probe, timeout)
    if not reachable:
        raise NoReachableServerError()
    return reachable


async def survey_endpoints(
    servers: list[Server],
    probe: Probe,
    timeout: float = SERVER_SCAN_TIMEOUT,
) -> list[EndpointStatus]:
    """Probe every endpoint of every server and report each outcome.

    Probes still running at the deadline are cancelled and reported as
    "Timeout" rather than dropped.

    Returns:
        One EndpointStatus per endpoint, in server and endpoint order.
    """
    pairs = [(server, endpoint) for server in servers for endpoint in server.endpoints]
    if not pairs:
        return []

    tasks = [asyncio.create_task(probe(endpoint, timeout)) for _, endpoint in pairs]
    _, pending = await asyncio.wait(tasks, timeout=timeout)
    for task in pending:
        task.cancel()

    statuses: list[EndpointStatus] = []
    for (server, endpoint), task in zip(pairs, tasks, strict=True):
        if task in pending:
            status = STATUS_TIMEOUT
        elif task.exception() is None and task.result():
            status = STATUS_UP
        else:
            status = STATUS_DOWN
        statuses.append(EndpointStatus(server=server, endpoint=endpoint, status=status))
    return statuses
