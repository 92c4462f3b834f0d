"""Configuration file writer for downstream playback tools.

The file is a flat YAML mapping:

    plex_token: <auth token>
    plex_url: <reachable server URI>
    chromecast_name: <receiver display name>
"""

import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

import yaml

from plexcast.errors import PersistenceError

logger = logging.getLogger(__name__)

# Written to the current working directory by default
CONFIG_FILE_NAME = "config.yaml"

# rw-rw-r--
CONFIG_FILE_MODE = 0o664

# Settings keys
_KEY_PLEX_TOKEN = "plex_token"
_KEY_PLEX_URL = "plex_url"
_KEY_CHROMECAST_NAME = "chromecast_name"

_KEYS = (_KEY_PLEX_TOKEN, _KEY_PLEX_URL, _KEY_CHROMECAST_NAME)


@dataclass(frozen=True, slots=True)
class Configuration:
    """The persisted (token, server URL, receiver name) triple.

    Attributes:
        plex_token: plex.tv authentication token.
        plex_url: URI of the chosen server endpoint.
        chromecast_name: Display name of the chosen receiver.
    """

    plex_token: str
    plex_url: str
    chromecast_name: str

    def to_dict(self) -> dict[str, str]:
        """Convert to a YAML-serialisable dict in key order."""
        return asdict(self)


def dump_config(config: Configuration) -> str:
    """Serialise a configuration to YAML text.

    Raises:
        PersistenceError: If serialisation fails (stage "serialise").
    """
    try:
        return yaml.safe_dump(
            config.to_dict(),
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )
    except yaml.YAMLError as e:
        raise PersistenceError(str(e), stage="serialise") from e


def write_config(path: str | os.PathLike[str], config: Configuration) -> Path:
    """Write a configuration file, replacing any existing one.

    The old file is removed first, then the new one is written with mode 0664.

    Args:
        path: Destination file.
        config: Configuration to persist.

    Returns:
        The path written.

    Raises:
        PersistenceError: If the document cannot be serialised or written.
    """
    data = dump_config(config)
    target = Path(path)

    try:
        target.unlink(missing_ok=True)
        target.write_text(data, encoding="utf-8")
        target.chmod(CONFIG_FILE_MODE)
    except OSError as e:
        raise PersistenceError(str(e), stage="write") from e

    logger.info("Wrote configuration to %s", target)
    return target


def read_config(path: str | os.PathLike[str]) -> Configuration:
    """Load a configuration file written by write_config().

    Raises:
        PersistenceError: If the file is missing, unreadable, or incomplete.
    """
    try:
        raw: Any = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise PersistenceError(str(e), stage="read") from e
    except yaml.YAMLError as e:
        raise PersistenceError(f"invalid YAML: {e}", stage="read") from e

    if not isinstance(raw, dict):
        raise PersistenceError("configuration is not a mapping", stage="read")

    missing = [key for key in _KEYS if key not in raw]
    if missing:
        raise PersistenceError(f"missing keys: {', '.join(missing)}", stage="read")

    return Configuration(
        plex_token=str(raw[_KEY_PLEX_TOKEN]),
        plex_url=str(raw[_KEY_PLEX_URL]),
        chromecast_name=str(raw[_KEY_CHROMECAST_NAME]),
    )
