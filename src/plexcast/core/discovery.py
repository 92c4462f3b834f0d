"""mDNS/Zeroconf discovery for Chromecast receivers."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable

from zeroconf import (
    DNSQuestionType,
    IPVersion,
    ServiceBrowser,
    ServiceInfo,
    ServiceListener,
    Zeroconf,
)

from plexcast.errors import DiscoveryError
from plexcast.models.receiver import CAST_PORT, Receiver

logger = logging.getLogger(__name__)

# Cast mDNS service type (advertised by Chromecasts and Cast-enabled speakers)
CAST_SERVICE_TYPE = "_googlecast._tcp.local."

# Default browse duration for `chromecast list`, in seconds
DISCOVERY_TIMEOUT = 15.0

# How long to wait for a service to resolve, in milliseconds. Stopping the
# browser waits for an in-flight resolve, so this bounds the overrun.
RESOLVE_TIMEOUT_MS = 1000


def _strip_service_type(name: str) -> str:
    """Strip the service type suffix from an mDNS instance name."""
    suffix = f".{CAST_SERVICE_TYPE}"
    if name.endswith(suffix):
        return name[: -len(suffix)]
    return name


def _decode_property(info: ServiceInfo, key: bytes) -> str:
    """Return a TXT record property as text, or empty string."""
    if not info.properties:
        return ""
    value = info.properties.get(key)
    if not value:
        return ""
    return value.decode("utf-8", errors="replace")


def receiver_from_info(name: str, info: ServiceInfo) -> Receiver:
    """Build a Receiver from resolved service info.

    The display name comes from the "fn" (friendly name) TXT property,
    falling back to the instance name.
    """
    addresses_v4 = info.parsed_addresses(IPVersion.V4Only)
    addresses_v6 = info.parsed_addresses(IPVersion.V6Only)
    display_name = _decode_property(info, b"fn") or _strip_service_type(name)

    return Receiver(
        name=display_name,
        host=info.server.rstrip(".") if info.server else "",
        address_v4=addresses_v4[0] if addresses_v4 else "",
        address_v6=addresses_v6[0] if addresses_v6 else "",
        port=info.port or CAST_PORT,
        service_name=name,
    )


class CastServiceListener(ServiceListener):
    """Listener collecting Cast service announcements.

    Zeroconf calls the listener from its own thread, so the result set is
    guarded by a lock. Receivers are keyed by display name and the first
    announcement for a name wins.
    """

    def __init__(self, on_found: Callable[[Receiver], None] | None = None) -> None:
        """Initialize the listener.

        Args:
            on_found: Callback when a new receiver is discovered.
        """
        self._on_found = on_found
        self._receivers: dict[str, Receiver] = {}
        self._lock = threading.Lock()

    @property
    def receivers(self) -> list[Receiver]:
        """Return receivers in discovery order."""
        with self._lock:
            return list(self._receivers.values())

    def add_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        """Handle service discovery."""
        info = zc.get_service_info(type_, name, timeout=RESOLVE_TIMEOUT_MS)
        if info is None:
            logger.debug("Could not get info for service: %s", name)
            return

        receiver = receiver_from_info(name, info)
        if not receiver.address:
            logger.debug("No addresses found for service: %s", name)
            return

        with self._lock:
            if receiver.name in self._receivers:
                logger.debug("Ignoring repeated announcement for %s", receiver.name)
                return
            self._receivers[receiver.name] = receiver

        logger.info(
            "Discovered Chromecast: %s at %s", receiver.name, receiver.display_address
        )
        if self._on_found:
            self._on_found(receiver)

    def remove_service(self, zc: Zeroconf, type_: str, name: str) -> None:  # noqa: ARG002
        """Handle service removal (receivers stay frozen once seen)."""
        logger.debug("Chromecast went away: %s", name)

    def update_service(self, zc: Zeroconf, type_: str, name: str) -> None:
        """Handle service update (only adds receivers not seen yet)."""
        self.add_service(zc, type_, name)


class ReceiverDiscovery:
    """Discovers Chromecast receivers on the local network via mDNS.

    Example:
        # Blocking discovery for a fixed duration
        receivers = ReceiverDiscovery.discover_all(timeout=15.0)

        # Background discovery with callbacks
        discovery = ReceiverDiscovery()
        discovery.start(on_found=lambda r: print(f"Found: {r.name}"))
        # ... later ...
        discovery.stop()
    """

    def __init__(self) -> None:
        """Initialize the discovery service."""
        self._zeroconf: Zeroconf | None = None
        self._browser: ServiceBrowser | None = None
        self._listener: CastServiceListener | None = None

    @property
    def receivers(self) -> list[Receiver]:
        """Return list of currently discovered receivers."""
        if self._listener:
            return self._listener.receivers
        return []

    def start(self, on_found: Callable[[Receiver], None] | None = None) -> None:
        """Start background discovery.

        Only multicast questions are sent; unicast responses are not requested.

        Args:
            on_found: Callback when a receiver is discovered.

        Raises:
            DiscoveryError: If the mDNS browser cannot be started.
        """
        if self._zeroconf is not None:
            return  # Already running

        try:
            self._zeroconf = Zeroconf()
            self._listener = CastServiceListener(on_found=on_found)
            self._browser = ServiceBrowser(
                self._zeroconf,
                CAST_SERVICE_TYPE,
                self._listener,
                question_type=DNSQuestionType.QM,
            )
        except Exception as e:  # noqa: BLE001
            self.stop()
            raise DiscoveryError(f"could not start mDNS browser: {e}") from e
        logger.debug("Started mDNS discovery for Chromecasts")

    def stop(self) -> None:
        """Stop background discovery."""
        if self._browser:
            self._browser.cancel()
            self._browser = None

        if self._zeroconf:
            self._zeroconf.close()
            self._zeroconf = None

        self._listener = None
        logger.debug("Stopped mDNS discovery")

    @staticmethod
    def discover_all(timeout: float = DISCOVERY_TIMEOUT) -> list[Receiver]:
        """Discover all receivers advertising within timeout.

        Args:
            timeout: Time to browse in seconds. There is no early exit. The
                call can return up to RESOLVE_TIMEOUT_MS later while an
                in-flight resolve finishes.

        Returns:
            Receivers with unique names, in discovery order.

        Raises:
            DiscoveryError: If the mDNS browser fails.
        """
        discovery = ReceiverDiscovery()
        discovery.start()

        try:
            # Wait for the full period to collect every receiver
            threading.Event().wait(timeout=timeout)
        finally:
            receivers = discovery.receivers
            discovery.stop()

        return receivers


def discover_receivers(duration: float = DISCOVERY_TIMEOUT) -> list[Receiver]:
    """Browse the LAN for Chromecasts for `duration` seconds."""
    return ReceiverDiscovery.discover_all(timeout=duration)


async def async_discover_receivers(duration: float = DISCOVERY_TIMEOUT) -> list[Receiver]:
    """Run discover_receivers() in a worker thread."""
    return await asyncio.to_thread(discover_receivers, duration)
