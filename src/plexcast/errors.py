"""Error kinds raised by plexcast library code.

Library components raise these and never exit; the CLI maps them to
exit codes.
"""


class PlexCastError(Exception):
    """Base class for all plexcast errors."""


class InputError(PlexCastError):
    """A required credential was missing or could not be read."""


class AuthError(PlexCastError):
    """The account service rejected the sign-in."""


class NetworkEnumerationError(PlexCastError):
    """The account service failed to list servers."""


class NoReachableServerError(PlexCastError):
    """Servers exist but none answered within the deadline."""

    def __init__(self, message: str = "No reachable servers found.") -> None:
        super().__init__(message)


class NoReceiverError(PlexCastError):
    """Discovery finished without finding any receiver."""

    def __init__(self, message: str = "No chromecasts found.") -> None:
        super().__init__(message)


class DiscoveryError(PlexCastError):
    """The mDNS browser failed to start or errored mid-run."""


class AmbiguousSelection(PlexCastError):  # noqa: N818
    """A choice between several entries is needed but cannot be asked."""


class PersistenceError(PlexCastError):
    """The configuration could not be serialised or written.

    Attributes:
        stage: "serialise", "write" or "read".
    """

    def __init__(self, message: str, stage: str = "write") -> None:
        super().__init__(message)
        self.stage = stage
