"""Test fixtures for plexcast tests."""

import asyncio
from collections.abc import Callable

import pytest

from plexcast.core.probe import Probe
from plexcast.models.server import Endpoint, Server

# uri -> (delay in seconds, reachable)
ProbePlan = dict[str, tuple[float, bool]]


def make_probe(plan: ProbePlan, calls: list[str] | None = None) -> Probe:
    """Return a fake probe that answers after a fixed delay per endpoint."""

    async def probe(endpoint: Endpoint, timeout: float) -> bool:
        if calls is not None:
            calls.append(endpoint.uri)
        delay, reachable = plan[endpoint.uri]
        await asyncio.sleep(delay)
        return reachable

    return probe


def make_server(name: str, *uris: str, source_title: str = "") -> Server:
    """Return a server with one endpoint per URI."""
    return Server(
        name=name,
        source_title=source_title,
        endpoints=tuple(Endpoint(uri=uri, local=uri.startswith("http://")) for uri in uris),
    )


@pytest.fixture
def probe_factory() -> Callable[..., Probe]:
    """Fixture returning make_probe."""
    return make_probe


@pytest.fixture
def server_factory() -> Callable[..., Server]:
    """Fixture returning make_server."""
    return make_server


@pytest.fixture
def mock_resources_response() -> list[dict]:
    """Return a plex.tv /api/v2/resources response."""
    return [
        {
            "name": "Home Server",
            "provides": "server",
            "clientIdentifier": "abc123",
            "owned": True,
            "sourceTitle": None,
            "connections": [
                {
                    "protocol": "http",
                    "address": "192.168.1.10",
                    "port": 32400,
                    "uri": "http://192.168.1.10:32400",
                    "local": True,
                    "relay": False,
                },
                {
                    "protocol": "https",
                    "address": "203.0.113.5",
                    "port": 32400,
                    "uri": "https://remote.example:32400",
                    "local": False,
                    "relay": False,
                },
            ],
        },
        {
            "name": "Friend's Server",
            "provides": "server",
            "clientIdentifier": "def456",
            "owned": False,
            "sourceTitle": "alice",
            "connections": [
                {
                    "protocol": "https",
                    "address": "198.51.100.7",
                    "port": 443,
                    "uri": "https://friend.example:443",
                    "local": False,
                    "relay": True,
                },
            ],
        },
        {
            "name": "Living Room TV",
            "provides": "client,player",
            "clientIdentifier": "tv001",
            "connections": [],
        },
    ]
