"""Main entry point for the plexcast command-line tool."""

import argparse
import asyncio
import logging
import math
import re
import sys
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager

from plexcast import __version__
from plexcast.api.plextv import PlexTvClient
from plexcast.core.config import CONFIG_FILE_NAME, Configuration, write_config
from plexcast.core.discovery import DISCOVERY_TIMEOUT, async_discover_receivers
from plexcast.core.enumerator import enumerate_servers, fetch_servers, survey_endpoints
from plexcast.core.probe import EndpointProber
from plexcast.core.prompts import choose, is_interactive, prompt_password, prompt_username
from plexcast.core.selector import SERVER_SCAN_TIMEOUT
from plexcast.core.table import Table
from plexcast.errors import (
    AmbiguousSelection,
    NoReceiverError,
    PersistenceError,
    PlexCastError,
)
from plexcast.models.credentials import Credentials
from plexcast.models.receiver import Receiver
from plexcast.models.server import ReachableEndpoint, sort_by_name

logger = logging.getLogger(__name__)

# Exit codes
EXIT_USERNAME = 1
EXIT_PASSWORD = 2
EXIT_SIGN_IN = 3
EXIT_DEVICES = 4
EXIT_CHROMECASTS = 5
EXIT_SERIALISE = 6
EXIT_AMBIGUOUS_CHROMECAST = 6
EXIT_WRITE = 7

# Browse time used by `configure`, in seconds
CONFIGURE_DISCOVERY_TIMEOUT = 60.0

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}

Handler = Callable[[argparse.Namespace], Awaitable[int]]


class CommandFailed(Exception):  # noqa: N818
    """A command step failed; carries the message prefix and exit code."""

    def __init__(self, prompt: str, error: Exception, code: int) -> None:
        super().__init__(f"{prompt}: {error}")
        self.prompt = prompt
        self.error = error
        self.code = code


@contextmanager
def fail_on(prompt: str, code: int) -> Iterator[None]:
    """Turn a PlexCastError raised inside the block into a CommandFailed."""
    try:
        yield
    except PlexCastError as e:
        raise CommandFailed(prompt, e, code) from e


def parse_duration(text: str) -> float:
    """Parse "500ms", "15s", "1m30s" or bare seconds into seconds."""
    value = text.strip()
    try:
        seconds = float(value)
    except ValueError:
        parts = _DURATION_PART.findall(value)
        if not parts or "".join(n + u for n, u in parts) != value:
            raise argparse.ArgumentTypeError(f"invalid duration: {text!r}") from None
        seconds = sum(float(n) * _DURATION_UNITS[u] for n, u in parts)
    if not math.isfinite(seconds) or seconds < 0:
        raise argparse.ArgumentTypeError(f"invalid duration: {text!r}")
    return seconds


def format_duration(seconds: float) -> str:
    """Format seconds the way durations are typed on the command line."""
    if seconds < 1:
        return f"{seconds * 1000:g}ms"
    return f"{seconds:g}s"


async def sign_in(
    args: argparse.Namespace, plex: PlexTvClient, show_progress: bool = True
) -> Credentials:
    """Prompt for missing credentials and sign in."""
    with fail_on("Failed to get username", EXIT_USERNAME):
        username = prompt_username(args.username)
    with fail_on("Failed to get password", EXIT_PASSWORD):
        password = prompt_password(args.password)

    if show_progress:
        print("Signing in ... ", end="", flush=True)
    with fail_on("failed to sign in", EXIT_SIGN_IN):
        credentials = await plex.sign_in(username, password)
    if show_progress:
        print("done")
    return credentials


async def plex_list(args: argparse.Namespace) -> int:
    """List the account's servers and whether they answer."""
    table = Table(["Server Name", "Username", "Url", "Status"])

    async with PlexTvClient() as plex:
        credentials = await sign_in(args, plex)
        async with EndpointProber(token=credentials.token) as prober:
            if args.all:
                with fail_on("failed to get devices", EXIT_DEVICES):
                    servers = await fetch_servers(plex, credentials)
                for status in await survey_endpoints(servers, prober.probe, args.timeout):
                    table.add_row(
                        {
                            "Server Name": status.server.name,
                            "Username": status.server.owner(credentials.username),
                            "Url": status.endpoint.uri,
                            "Status": status.status,
                        }
                    )
            else:
                with fail_on("failed to get devices", EXIT_DEVICES):
                    reachable = await enumerate_servers(
                        plex, credentials, prober.probe, args.timeout
                    )
                for result in sort_by_name(reachable):
                    table.add_row(
                        {
                            "Server Name": result.name,
                            "Username": result.server.owner(credentials.username),
                            "Url": result.uri,
                            "Status": "Up",
                        }
                    )

    table.print()
    return 0


async def plex_token(args: argparse.Namespace) -> int:
    """Sign in and print the auth token."""
    async with PlexTvClient() as plex:
        credentials = await sign_in(args, plex, show_progress=False)
    print(credentials.token)
    return 0


async def chromecast_list(args: argparse.Namespace) -> int:
    """Browse for Chromecasts and print what was found."""
    print(f"Searching for chromecasts for {format_duration(args.timeout)} ... ")
    with fail_on("failed to find chromecasts", EXIT_CHROMECASTS):
        receivers = await async_discover_receivers(args.timeout)

    table = Table(["Chromecast Name", "Address"])
    for receiver in receivers:
        table.add_row({"Chromecast Name": receiver.name, "Address": receiver.display_address})
    table.print()
    return 0


def pick_server(reachable: list[ReachableEndpoint]) -> ReachableEndpoint:
    """Pick the only server, or ask the user when there are several."""
    ordered = sort_by_name(reachable)
    if len(ordered) == 1:
        return ordered[0]
    print(f"Found {len(ordered)} valid devices")
    return choose("Select a server", ordered, lambda r: f"{r.name} ({r.uri})")


def pick_receiver(receivers: list[Receiver]) -> Receiver:
    """Pick the only receiver, or ask the user on an interactive terminal."""
    if not receivers:
        raise NoReceiverError()
    if len(receivers) == 1:
        return receivers[0]

    print(f"Found {len(receivers)} chromecasts")
    if not is_interactive():
        raise AmbiguousSelection(
            f"found {len(receivers)} chromecasts, use --chromecast to choose one"
        )
    return choose("Select a chromecast", receivers, lambda r: f"{r.name} ({r.display_address})")


async def resolve_server(args: argparse.Namespace) -> tuple[str, str]:
    """Return (token, server URL), signing in and probing as needed."""
    token: str = args.plex_token or ""
    url: str = args.plex_url or ""
    if token and url:
        return token, url

    async with PlexTvClient() as plex:
        if token:
            credentials = Credentials(token=token)
        else:
            credentials = await sign_in(args, plex)

        if not url:
            print("Testing devices ... ", end="", flush=True)
            async with EndpointProber(token=credentials.token) as prober:
                with fail_on("failed to get device", EXIT_DEVICES):
                    reachable = await enumerate_servers(
                        plex, credentials, prober.probe, args.timeout
                    )
            print("done")
            with fail_on("failed to get device", EXIT_DEVICES):
                device = pick_server(reachable)
            print(f"got device: {device.name}")
            url = device.uri

    return credentials.token, url


async def resolve_receiver(args: argparse.Namespace) -> str:
    """Return the receiver name, discovering receivers if not given."""
    if args.chromecast:
        return args.chromecast

    print("Discovering chromecasts ... ", end="", flush=True)
    with fail_on("failed to find chromecasts", EXIT_CHROMECASTS):
        receivers = await async_discover_receivers(args.discovery_timeout)
        print("done")
        if not receivers:
            raise NoReceiverError()
    with fail_on("failed to choose chromecast", EXIT_AMBIGUOUS_CHROMECAST):
        receiver = pick_receiver(receivers)
    print(f"found {receiver.name}")
    return receiver.name


async def configure(args: argparse.Namespace) -> int:
    """Sign in, pick a server and a receiver, and write the config file."""
    token, url = await resolve_server(args)
    chromecast_name = await resolve_receiver(args)

    config = Configuration(plex_token=token, plex_url=url, chromecast_name=chromecast_name)
    try:
        write_config(args.output, config)
    except PersistenceError as e:
        if e.stage == "serialise":
            raise CommandFailed("Failed to create config", e, EXIT_SERIALISE) from e
        raise CommandFailed("Failed to write config", e, EXIT_WRITE) from e

    print("Done!")
    return 0


def _add_credential_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--username", help="Plex username")
    parser.add_argument("--password", help="Plex password")


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="plexcast",
        description="Link a Plex server and a Chromecast for streaming",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="enable debug logging"
    )
    commands = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")

    plex = commands.add_parser("plex", help="Plex commands")
    plex_commands = plex.add_subparsers(dest="plex_command", required=True, metavar="COMMAND")

    plex_list_parser = plex_commands.add_parser("list", help="List all plex servers")
    _add_credential_flags(plex_list_parser)
    plex_list_parser.add_argument(
        "--timeout",
        type=parse_duration,
        default=SERVER_SCAN_TIMEOUT,
        help="timeout connecting to servers (default: 5s)",
    )
    plex_list_parser.add_argument(
        "--all", action="store_true", help="probe and show every server endpoint"
    )
    plex_list_parser.set_defaults(handler=plex_list)

    plex_token_parser = plex_commands.add_parser("token", help="Get plex token")
    _add_credential_flags(plex_token_parser)
    plex_token_parser.set_defaults(handler=plex_token)

    chromecast = commands.add_parser("chromecast", help="Chromecast commands")
    chromecast_commands = chromecast.add_subparsers(
        dest="chromecast_command", required=True, metavar="COMMAND"
    )
    chromecast_list_parser = chromecast_commands.add_parser("list", help="Find chromecasts")
    chromecast_list_parser.add_argument(
        "--timeout",
        type=parse_duration,
        default=DISCOVERY_TIMEOUT,
        help="wait this long to find chromecasts (default: 15s)",
    )
    chromecast_list_parser.set_defaults(handler=chromecast_list)

    configure_parser = commands.add_parser("configure", help="Store settings for future use")
    _add_credential_flags(configure_parser)
    configure_parser.add_argument("--plex-token", help="Plex token (skips sign-in)")
    configure_parser.add_argument("--plex-url", help="Plex server URL (skips server scan)")
    configure_parser.add_argument("--chromecast", help="Chromecast name (skips discovery)")
    configure_parser.add_argument(
        "--timeout",
        type=parse_duration,
        default=SERVER_SCAN_TIMEOUT,
        help="timeout connecting to servers (default: 5s)",
    )
    configure_parser.add_argument(
        "--discovery-timeout",
        type=parse_duration,
        default=CONFIGURE_DISCOVERY_TIMEOUT,
        help="wait this long to find chromecasts (default: 1m)",
    )
    configure_parser.add_argument(
        "--output",
        default=CONFIG_FILE_NAME,
        help=f"configuration file to write (default: {CONFIG_FILE_NAME})",
    )
    configure_parser.set_defaults(handler=configure)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the plexcast command line.

    Returns:
        Exit code (0 for success).
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    handler: Handler = args.handler
    try:
        return asyncio.run(handler(args))
    except CommandFailed as e:
        logger.debug("Command failed", exc_info=e.error)
        print(f"{e.prompt}: {e.error}")
        return e.code
    except KeyboardInterrupt:
        print()
        return 130


if __name__ == "__main__":
    sys.exit(main())
