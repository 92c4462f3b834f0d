"""Account credentials model."""

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Credentials:
    """Authentication token issued by plex.tv on sign-in.

    Attributes:
        token: Opaque authentication token.
        username: Username the token belongs to, for display.
    """

    token: str = field(repr=False)
    username: str = ""
