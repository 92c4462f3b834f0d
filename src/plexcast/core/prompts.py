"""Terminal prompts: credentials and numbered menus."""

import getpass
import logging
import sys
from collections.abc import Callable, Sequence
from typing import TypeVar

from plexcast.errors import AmbiguousSelection, InputError

logger = logging.getLogger(__name__)

T = TypeVar("T")

InputFunc = Callable[[str], str]


def prompt_username(value: str | None = None, read: InputFunc | None = None) -> str:
    """Return the username flag, or ask for it on the terminal.

    Raises:
        InputError: If the username cannot be read or is empty.
    """
    if value:
        return value
    try:
        username = (read or input)("Plex username: ").strip()
    except (EOFError, OSError) as e:
        raise InputError("could not read username") from e
    if not username:
        raise InputError("username is required")
    return username


def prompt_password(value: str | None = None, read: InputFunc | None = None) -> str:
    """Return the password flag, or ask for it without echo.

    Raises:
        InputError: If the password cannot be read or is empty.
    """
    if value:
        return value
    try:
        password = (read or getpass.getpass)("Plex password: ")
    except (EOFError, OSError) as e:
        raise InputError("could not read password") from e
    if not password:
        raise InputError("password is required")
    return password


def is_interactive() -> bool:
    """Return True if stdin is attached to a terminal."""
    try:
        return sys.stdin.isatty()
    except (AttributeError, ValueError):
        return False


def choose(
    title: str,
    items: Sequence[T],
    label: Callable[[T], str],
    read: InputFunc | None = None,
) -> T:
    """Ask the user to pick one entry from a numbered menu.

    Args:
        title: Menu heading.
        items: Entries to choose from (at least two).
        label: Returns the display text for an entry.
        read: Input function (defaults to input()).

    Returns:
        The chosen entry (selection is 1-based).

    Raises:
        AmbiguousSelection: If input ends before a valid choice is made.
    """
    print(title)
    for index, item in enumerate(items, start=1):
        print(f"  {index}) {label(item)}")

    while True:
        try:
            raw = (read or input)(f"Select 1-{len(items)}: ").strip()
        except (EOFError, OSError) as e:
            raise AmbiguousSelection(f"no selection made among {len(items)} entries") from e

        if raw.isdigit() and 1 <= int(raw) <= len(items):
            chosen = items[int(raw) - 1]
            logger.debug("Selected %s", label(chosen))
            return chosen
        print(f"Invalid choice: {raw!r}")
