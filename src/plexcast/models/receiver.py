"""Casting receiver model."""

from dataclasses import dataclass

# Default port of the Cast v2 protocol
CAST_PORT = 8009


@dataclass(frozen=True, slots=True)
class Receiver:
    """A Chromecast device discovered on the LAN.

    Identity is the display name.

    Attributes:
        name: Human-readable device name.
        host: mDNS host name (e.g. "abc123.local").
        address_v4: IPv4 address, empty if not advertised.
        address_v6: IPv6 address, empty if not advertised.
        port: TCP port of the cast service.
        service_name: Raw mDNS service instance name.
    """

    name: str
    host: str = ""
    address_v4: str = ""
    address_v6: str = ""
    port: int = CAST_PORT
    service_name: str = ""

    @property
    def address(self) -> str:
        """Return the preferred address (IPv4 first), or host as fallback."""
        return self.address_v4 or self.address_v6 or self.host

    @property
    def display_address(self) -> str:
        """Return address:port for display."""
        if not self.address_v4 and self.address_v6:
            return f"[{self.address_v6}]:{self.port}"
        return f"{self.address}:{self.port}"
