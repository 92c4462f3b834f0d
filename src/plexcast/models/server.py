"""Plex server and endpoint models."""

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Endpoint:
    """A URI that serves a Plex server.

    Reachability is never stored here; it is the transient result of a probe.

    Attributes:
        uri: Full URI of the endpoint (e.g. "http://192.168.1.10:32400").
        local: True if the endpoint is on the private network.
        protocol: URI scheme as reported by the account service.
        address: Host or IP address.
        port: TCP port.
        relay: True if traffic goes through the Plex relay service.
    """

    uri: str
    local: bool = False
    protocol: str = ""
    address: str = ""
    port: int = 0
    relay: bool = False


@dataclass(frozen=True, slots=True)
class Server:
    """A Plex media server owned by, or shared with, an account.

    Attributes:
        name: Display name of the server.
        source_title: Owner's name for shared servers, empty if owned.
        client_identifier: Machine identifier from the account service.
        endpoints: Ordered candidate endpoints for this server.
    """

    name: str
    source_title: str = ""
    client_identifier: str = ""
    endpoints: tuple[Endpoint, ...] = field(default_factory=tuple)

    def owner(self, default: str = "") -> str:
        """Return the owning account name, or default for owned servers."""
        return self.source_title or default


@dataclass(frozen=True, slots=True)
class ReachableEndpoint:
    """A server paired with the endpoint that won its probe race.

    Attributes:
        server: The server.
        endpoint: The endpoint that answered first.
        latency: Seconds from probe start to the winning answer.
    """

    server: Server
    endpoint: Endpoint
    latency: float = 0.0

    @property
    def name(self) -> str:
        """Return the server name."""
        return self.server.name

    @property
    def uri(self) -> str:
        """Return the endpoint URI."""
        return self.endpoint.uri


def sort_by_name(results: list[ReachableEndpoint]) -> list[ReachableEndpoint]:
    """Return reachable endpoints in a canonical (name, uri) order."""
    return sorted(results, key=lambda r: (r.name.casefold(), r.uri))
