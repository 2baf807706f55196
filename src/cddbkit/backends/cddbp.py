"""Backend speaking CDDBP, the line-based CDDB protocol over TCP."""

from __future__ import annotations

import contextlib
import logging
import socket
from typing import BinaryIO

from cddbkit.backends.base import TERMINATOR, Reply, parse_response
from cddbkit.config import CddbpConfig
from cddbkit.exceptions import BackendError
from cddbkit.models.enums import ResponseCode

logger = logging.getLogger(__name__)

# Protocol level 5 is ISO-8859-1
WIRE_ENCODING = "latin-1"

_HANDSHAKE_OK = frozenset({ResponseCode.OK, ResponseCode.SERVER_ALREADY})
_BANNER_OK = frozenset({ResponseCode.OK, ResponseCode.OK_RO})


class CddbpBackend:
    """Persistent TCP connection to a CDDBP server.

    ``connect`` reads the server banner, shakes hands with
    ``cddb hello`` and switches to protocol level 5.
    """

    def __init__(self, config: CddbpConfig) -> None:
        self._config = config
        self._sock: socket.socket | None = None
        self._reader: BinaryIO | None = None
        self._reply = Reply(0, "")

    @property
    def address(self) -> str:
        return f"{self._config.host}:{self._config.port}"

    def connect(self) -> bool:
        if self._sock is not None:
            return True

        cfg = self._config
        logger.debug("Connecting to CDDBP server %s", self.address)
        try:
            self._sock = socket.create_connection(
                (cfg.host, cfg.port), timeout=cfg.timeout
            )
        except OSError as e:
            raise BackendError(f"Could not connect to {self.address}: {e}") from e
        self._reader = self._sock.makefile("rb")

        banner = self._read_line()
        if not banner or _status_of(banner) not in _BANNER_OK:
            self._close()
            raise BackendError(f"Server {self.address} refused connection: {banner}")

        hello = (
            f"cddb hello {cfg.user} {cfg.hostname} "
            f"{cfg.client_name} {cfg.client_version}"
        )
        response = self._request_line(hello)
        if _status_of(response) not in _HANDSHAKE_OK:
            self._close()
            raise BackendError(f"Handshake with {self.address} failed: {response}")

        # A server that cannot switch levels keeps answering at its own level
        self._request_line(f"proto {cfg.proto}")
        logger.debug("Connected to %s: %s", self.address, banner)
        return True

    def disconnect(self) -> bool:
        if self._sock is None:
            return False
        with contextlib.suppress(BackendError):
            self._write_line("quit")
        self._close()
        return True

    def connected(self) -> bool:
        return self._sock is not None

    def is_remote(self) -> bool:
        return True

    def status(self) -> int:
        return self._reply.status

    def message(self) -> str:
        return self._reply.message

    def receive(self) -> str:
        return self._reply.body

    def send(self, command: str) -> None:
        """Send a command and read its full response.

        A server may drop an idle connection without warning. An empty
        response reconnects and sends the command again, once.
        """
        self.connect()
        lines = self._exchange(command)
        if not lines:
            logger.debug("Empty response from %s, reconnecting", self.address)
            self._close()
            self.connect()
            lines = self._exchange(command)
            if not lines:
                self._close()
                raise BackendError(f"No response from {self.address} to {command!r}")
        self._reply = parse_response(lines)
        logger.debug("%s: %r -> %d", self.address, command, self._reply.status)

    def _exchange(self, command: str) -> list[str]:
        self._write_line(command)
        first = self._read_line()
        if not first:
            return []
        lines = [first]
        if ResponseCode.is_multiline(_status_of(first)):
            while True:
                line = self._read_line()
                if line is None or line == TERMINATOR:
                    break
                lines.append(line)
        return lines

    def _request_line(self, command: str) -> str:
        self._write_line(command)
        return self._read_line() or ""

    def _write_line(self, line: str) -> None:
        if self._sock is None:
            raise BackendError(f"Not connected to {self.address}")
        try:
            self._sock.sendall(line.encode(WIRE_ENCODING, errors="replace") + b"\r\n")
        except OSError as e:
            self._close()
            raise BackendError(f"Failed to send to {self.address}: {e}") from e

    def _read_line(self) -> str | None:
        """Read one line without its line ending, or None at end of stream."""
        if self._reader is None:
            raise BackendError(f"Not connected to {self.address}")
        try:
            raw = self._reader.readline()
        except OSError as e:
            self._close()
            raise BackendError(f"Failed to read from {self.address}: {e}") from e
        if not raw:
            return None
        return raw.decode(WIRE_ENCODING).rstrip("\r\n")

    def _close(self) -> None:
        if self._reader is not None:
            self._reader.close()
        if self._sock is not None:
            self._sock.close()
        self._reader = None
        self._sock = None


def _status_of(line: str | None) -> int:
    code = (line or "")[:3]
    return int(code) if code.isdigit() else 0
