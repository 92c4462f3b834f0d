"""API client for the plex.tv account service."""

from plexcast.api.plextv import PlexTvClient

__all__ = ["PlexTvClient"]
