"""Data models for Plex accounts, servers and cast receivers."""

from plexcast.models.credentials import Credentials
from plexcast.models.receiver import Receiver
from plexcast.models.server import Endpoint, ReachableEndpoint, Server, sort_by_name

__all__ = [
    "Credentials",
    "Endpoint",
    "ReachableEndpoint",
    "Receiver",
    "Server",
    "sort_by_name",
]
