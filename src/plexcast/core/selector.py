"""Best-endpoint selection: race every endpoint of a server.

All endpoints are probed at once and the first one to answer wins. LAN
endpoints usually answer in milliseconds while public ones can take
seconds, so the wait stays close to the fastest responder.
"""

import asyncio
import logging

from plexcast.core.probe import Probe
from plexcast.models.server import Endpoint, ReachableEndpoint, Server

logger = logging.getLogger(__name__)

# Default time allowed for a server's endpoints to answer, in seconds
SERVER_SCAN_TIMEOUT = 5.0


def _probe_succeeded(task: asyncio.Task[bool], endpoint: Endpoint) -> bool:
    """Return the probe result, treating errors and cancellation as unreachable."""
    if task.cancelled():
        return False
    error = task.exception()
    if error is not None:
        logger.debug("Probe of %s raised: %r", endpoint.uri, error)
        return False
    return bool(task.result())


async def select_best(
    server: Server,
    probe: Probe,
    timeout: float = SERVER_SCAN_TIMEOUT,
) -> ReachableEndpoint | None:
    """Return the first endpoint of a server that answers its probe.

    Args:
        server: Server whose endpoints are raced.
        probe: Probe callable, given an endpoint and the seconds left.
        timeout: Seconds until the deadline.

    Returns:
        The winning endpoint, or None if nothing answered before the deadline.
        Running out of endpoints or time is a normal result, never an error.
    """
    if not server.endpoints or timeout <= 0:
        return None

    loop = asyncio.get_running_loop()
    started = loop.time()
    deadline = started + timeout

    tasks: dict[asyncio.Task[bool], Endpoint] = {
        asyncio.create_task(probe(endpoint, timeout)): endpoint
        for endpoint in server.endpoints
    }
    pending: set[asyncio.Task[bool]] = set(tasks)

    try:
        while pending:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            done, pending = await asyncio.wait(
                pending, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
            )
            # Read every finished task so no probe error goes unretrieved
            answered = [
                endpoint
                for task, endpoint in tasks.items()
                if task in done and _probe_succeeded(task, endpoint)
            ]
            if answered:
                endpoint = answered[0]
                latency = loop.time() - started
                logger.debug(
                    "%s: %s answered first after %.0fms",
                    server.name,
                    endpoint.uri,
                    latency * 1000,
                )
                return ReachableEndpoint(server=server, endpoint=endpoint, latency=latency)
    finally:
        # Losers only return values, so cancelling them is just cleanup
        for task in pending:
            task.cancel()

    logger.debug("%s: no endpoint answered within %.1fs", server.name, timeout)
    return None
