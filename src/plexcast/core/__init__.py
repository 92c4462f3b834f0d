"""Core logic: probing, endpoint selection, discovery and config output.

Modules:
    probe: HTTP reachability probe (EndpointProber).
    selector: Race all endpoints of one server (select_best).
    enumerator: Run selection across all account servers (enumerate_servers).
    discovery: mDNS browse for Chromecasts (discover_receivers).
    config: YAML configuration writer (write_config).
"""

from plexcast.core.config import Configuration, read_config, write_config
from plexcast.core.discovery import ReceiverDiscovery, discover_receivers
from plexcast.core.enumerator import EndpointStatus, enumerate_servers, survey_endpoints
from plexcast.core.probe import EndpointProber
from plexcast.core.selector import select_best

__all__ = [
    "Configuration",
    "EndpointProber",
    "EndpointStatus",
    "ReceiverDiscovery",
    "discover_receivers",
    "enumerate_servers",
    "read_config",
    "select_best",
    "survey_endpoints",
    "write_config",
]
