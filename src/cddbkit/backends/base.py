"""Backend protocol and the command handling shared by local backends."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from datetime import datetime
from pathlib import Path
from typing import ClassVar, NamedTuple, Protocol

from cddbkit.config import CLIENT_NAME, CLIENT_VERSION, DEFAULT_PROTOCOL_LEVEL
from cddbkit.lib.discid import compute_disc_id
from cddbkit.models.enums import ResponseCode

logger = logging.getLogger(__name__)

TERMINATOR = "."


class Backend(Protocol):
    """A CDDB data source the client and the server can talk to.

    Every command is a full exchange: ``send`` a command line, then read
    the outcome through ``status``, ``message`` and ``receive``.
    Transport failures raise ``BackendError``.
    """

    def connect(self) -> bool:
        """Open the connection. Returns True once connected."""
        ...

    def disconnect(self) -> bool:
        """Close the connection. Returns True if one was open."""
        ...

    def connected(self) -> bool:
        """Whether a connection is currently open."""
        ...

    def send(self, command: str) -> None:
        """Send one command line and buffer the response."""
        ...

    def receive(self) -> str:
        """Body of the last response (terminator excluded)."""
        ...

    def status(self) -> int:
        """Status code of the last response."""
        ...

    def message(self) -> str:
        """Status line text of the last response."""
        ...

    def is_remote(self) -> bool:
        """Whether responses come from another CDDB server."""
        ...


class Reply(NamedTuple):
    """A buffered backend response."""

    status: int
    message: str
    body: str = ""


def split_command(command: str) -> tuple[str, list[str]]:
    """Split a command line into its name and arguments.

    ``cddb`` commands are named by their first two words::

        >>> split_command("cddb read rock d50dd30f")
        ('cddb read', ['rock', 'd50dd30f'])
        >>> split_command("motd")
        ('motd', [])
    """
    tokens = command.split()
    if not tokens:
        return "", []
    name = tokens[0].lower()
    if name == "cddb" and len(tokens) > 1:
        return f"cddb {tokens[1].lower()}", tokens[2:]
    return name, tokens[1:]


def parse_response(lines: list[str]) -> Reply:
    """Split raw protocol lines into status, status text and body.

    For single-line responses the body is the status text itself, so a
    ``200 rock d50dd30f Artist / Title`` query match reads like a one-line
    listing.
    """
    lines = [line.rstrip("\r") for line in lines]
    while lines and lines[-1].strip() in ("", TERMINATOR):
        lines.pop()
    if not lines:
        return Reply(0, "")

    first = lines[0].strip()
    code = first[:3]
    status = int(code) if code.isdigit() else 0
    message = first[4:].strip()
    if ResponseCode.is_multiline(status):
        return Reply(status, message, "\n".join(lines[1:]))
    return Reply(status, message, message)


def format_stat(interface: str, counts: Mapping[str, int]) -> str:
    """Format the ``stat`` command body for a local database."""
    lines = [
        "Server status:",
        f"    current proto: {DEFAULT_PROTOCOL_LEVEL}",
        f"    max proto: {DEFAULT_PROTOCOL_LEVEL}",
        f"    interface: {interface}",
        "    gets: no",
        "    puts: no",
        "    updates: no",
        "    posting: no",
        "    validation: accepted",
        "    quotes: no",
        "    strip ext: no",
        "    secure: yes",
        "    current users: 1",
        "    max users: 100",
        f"Database entries: {sum(counts.values())}",
        "Database entries by category:",
    ]
    lines.extend(f"    {category}: {count}" for category, count in counts.items())
    return "\n".join(lines)


_SYNTAX_ERROR = Reply(
    ResponseCode.ERROR_SYNTAX, "Command syntax error: incorrect number of arguments."
)


class LocalBackend(ABC):
    """Base for backends that answer commands from a local database.

    Subclasses provide storage access; command parsing, the handler table
    and the canned responses live here. Unknown commands leave status 500.
    """

    interface_name: ClassVar[str] = "local"

    def __init__(self, motd_file: Path | None = None) -> None:
        self._motd_file = motd_file
        self._connected = False
        self._reply = Reply(ResponseCode.ERROR_SYNTAX, "")
        self._handlers: dict[str, Callable[[list[str]], Reply]] = {
            "cddb read": self._read,
            "cddb lscat": self._lscat,
            "cddb query": self._query,
            "cddb hello": self._hello,
            "discid": self._discid,
            "motd": self._motd,
            "proto": self._proto,
            "quit": self._quit,
            "stat": self._stat,
            "ver": self._ver,
        }

    # -- storage hooks -----------------------------------------------------

    @abstractmethod
    def _open(self) -> None:
        """Open the underlying store, raising BackendError on failure."""

    def _close(self) -> None:
        """Release the underlying store."""

    @abstractmethod
    def list_categories(self) -> list[str]:
        """Names of all categories in the database."""

    @abstractmethod
    def find_matches(self, disc_id: str) -> list[str]:
        """Query match lines (``category discid artist / title``) for a disc ID."""

    @abstractmethod
    def load_record(self, category: str, disc_id: str) -> str | None:
        """Record text for a disc, or None when there is no such entry."""

    @abstractmethod
    def category_counts(self) -> dict[str, int]:
        """Number of entries per category."""

    # -- Backend protocol --------------------------------------------------

    def connect(self) -> bool:
        if not self._connected:
            self._open()
            self._connected = True
        return True

    def disconnect(self) -> bool:
        if not self._connected:
            return False
        self._close()
        self._connected = False
        return True

    def connected(self) -> bool:
        return self._connected

    def is_remote(self) -> bool:
        return False

    def status(self) -> int:
        return int(self._reply.status)

    def message(self) -> str:
        return self._reply.message

    def receive(self) -> str:
        return self._reply.body

    def send(self, command: str) -> None:
        name, args = split_command(command)
        handler = self._handlers.get(name)
        if not name:
            self._reply = Reply(ResponseCode.ERROR_EMPTY, "Empty command input.")
        elif handler is None:
            self._reply = Reply(ResponseCode.ERROR_UNRECOGNIZED, "Unrecognized command.")
        else:
            self.connect()
            self._reply = handler(args)
        logger.debug(
            "%s: %r -> %d", type(self).__name__, command, self._reply.status
        )

    # -- command handlers --------------------------------------------------

    def _read(self, args: list[str]) -> Reply:
        if len(args) != 2:
            return Reply(ResponseCode.SERVER_ERROR, "Server error.")
        category, disc_id = args
        record = self.load_record(category, disc_id)
        if record is None:
            return Reply(ResponseCode.SERVER_UNAVAIL, "No such CD entry in database.")
        return Reply(
            ResponseCode.OK_FOLLOWS,
            f"{category} {disc_id} CD database entry follows (until terminating `.')",
            record.strip(),
        )

    def _lscat(self, args: list[str]) -> Reply:
        return Reply(
            ResponseCode.OK_FOLLOWS,
            "OK, category list follows (until terminating `.')",
            "\n".join(self.list_categories()),
        )

    def _query(self, args: list[str]) -> Reply:
        if not args:
            return _SYNTAX_ERROR
        matches = self.find_matches(args[0])
        if not matches:
            return Reply(ResponseCode.OK_NOMATCH, "No match found.")
        if len(matches) == 1:
            return Reply(ResponseCode.OK, matches[0], matches[0])
        return Reply(
            ResponseCode.OK_INEXACT,
            "Found inexact matches, list follows (until terminating `.')",
            "\n".join(matches),
        )

    def _hello(self, args: list[str]) -> Reply:
        if len(args) < 4:
            return Reply(
                ResponseCode.SERVER_BADHANDSHAKE,
                "Handshake not successful, closing connection.",
            )
        user, host, client, version = args[:4]
        return Reply(
            ResponseCode.OK,
            f"Hello and welcome {user}@{host} running {client} {version}.",
        )

    def _discid(self, args: list[str]) -> Reply:
        try:
            numbers = [int(arg) for arg in args]
        except ValueError:
            return _SYNTAX_ERROR
        if len(numbers) < 2 or numbers[0] != len(numbers) - 2:
            return _SYNTAX_ERROR
        disc_id = compute_disc_id(numbers[1:-1], numbers[-1])
        text = f"Disc ID is {disc_id}"
        return Reply(ResponseCode.OK, text, text)

    def _motd(self, args: list[str]) -> Reply:
        path = self._motd_file
        if path is None or not path.is_file():
            return Reply(ResponseCode.SERVER_UNAVAIL, "No message of the day available.")
        modified = datetime.fromtimestamp(path.stat().st_mtime)
        return Reply(
            ResponseCode.OK_FOLLOWS,
            f"Last modified: {modified:%m/%d/%y %H:%M:%S} "
            "MOTD follows (until terminating `.')",
            path.read_text(encoding="latin-1").strip(),
        )

    def _proto(self, args: list[str]) -> Reply:
        if args:
            return Reply(
                ResponseCode.OK_SET,
                f"OK, protocol version now: {DEFAULT_PROTOCOL_LEVEL}",
            )
        return Reply(
            ResponseCode.OK,
            f"CDDB protocol level: current {DEFAULT_PROTOCOL_LEVEL}, "
            f"supported {DEFAULT_PROTOCOL_LEVEL}",
        )

    def _quit(self, args: list[str]) -> Reply:
        return Reply(230, "Closing connection.  Goodbye.")

    def _stat(self, args: list[str]) -> Reply:
        return Reply(
            ResponseCode.OK_FOLLOWS,
            "OK, status information follows (until terminating `.')",
            format_stat(self.interface_name, self.category_counts()),
        )

    def _ver(self, args: list[str]) -> Reply:
        text = f"{CLIENT_NAME}/{type(self).__name__} v{CLIENT_VERSION}"
        return Reply(ResponseCode.OK, text, text)
