"""plexcast: link a Plex account to a Chromecast on the local network."""

__version__ = "0.1.0"
