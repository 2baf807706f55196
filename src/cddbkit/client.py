"""CDDB client: builds protocol commands and interprets server responses."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from types import TracebackType

from cddbkit.backends.base import TERMINATOR, Backend, Reply
from cddbkit.config import ClientConfig
from cddbkit.exceptions import BackendError, TOCReadError
from cddbkit.lib.discid import compute_disc_id
from cddbkit.lib.record import parse_record, parse_search_result
from cddbkit.models.disc import DISC_ID_LENGTH, Disc
from cddbkit.models.enums import LookupStatus, ResponseCode, SubmitMode
from cddbkit.models.results import QueryResult, ReadResult, Site, SubmitResult
from cddbkit.readers.base import TOCReader
from cddbkit.services.submit import DiscSubmitter

logger = logging.getLogger(__name__)

# Keys kept from the ``stat`` response
STATISTICS_KEYS = frozenset(
    {
        "current_proto",
        "max_proto",
        "interface",
        "gets",
        "puts",
        "updates",
        "posting",
        "validation",
        "quotes",
        "strip_ext",
        "secure",
        "current_users",
        "max_users",
        "data",
        "folk",
        "jazz",
        "misc",
        "rock",
        "country",
        "blues",
        "newage",
        "reggae",
        "classical",
        "soundtrack",
    }
)

_SITE_FIELDS = 6


def query_command(offsets: Sequence[int], length: int) -> str:
    """Build the ``cddb query`` command for a table of contents.

    Examples:
        >>> query_command([150, 15471], 200)
        'cddb query 0a00c602 2 150 15471 200'
    """
    disc_id = compute_disc_id(offsets, length).rjust(DISC_ID_LENGTH, "0")
    return " ".join(
        ["cddb query", disc_id, str(len(offsets)), *map(str, offsets), str(length)]
    )


def discid_command(offsets: Sequence[int], length: int) -> str:
    """Build the ``discid`` command for a table of contents."""
    return " ".join(["discid", str(len(offsets)), *map(str, offsets), str(length)])


def iter_lines(body: str) -> Iterator[str]:
    """Yield trimmed payload lines up to the first empty or terminator line."""
    for line in body.split("\n"):
        line = line.strip()
        if not line or line == TERMINATOR:
            return
        yield line


def _text(reply: Reply) -> str:
    text = reply.body if ResponseCode.is_multiline(reply.status) else reply.message
    return text.strip(" .\r\n\t")


class CDDBClient:
    """Client for a CDDB database reached through a backend.

    Every operation is one exchange with the backend. Failures are returned
    as result values: a search with no match is NOT_FOUND, a server or
    transport error is FAILED with the server's message.

    Example:
        >>> from cddbkit.backends import backend_from_dsn
        >>> with CDDBClient(backend_from_dsn("cddbp://freedb.freedb.org")) as client:
        ...     result = client.search_database(offsets, 3541)
        ...     for disc in result.discs:
        ...         print(disc.category, disc.disc_id, disc.artist, disc.title)
    """

    def __init__(
        self,
        backend: Backend,
        reader: TOCReader | None = None,
        config: ClientConfig | None = None,
        submitter: DiscSubmitter | None = None,
    ) -> None:
        self._backend = backend
        self._reader = reader
        self._config = config or ClientConfig()
        self._submitter = submitter or DiscSubmitter(self._config)

    @property
    def backend(self) -> Backend:
        return self._backend

    def __enter__(self) -> CDDBClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.disconnect()

    def connect(self) -> bool:
        if not self._backend.connected():
            return self._backend.connect()
        return True

    def disconnect(self) -> bool:
        if self._backend.connected():
            return self._backend.disconnect()
        return True

    # -- exchange ----------------------------------------------------------

    def _exchange(self, command: str) -> Reply:
        self.connect()
        try:
            self._backend.send(command)
            return Reply(
                self._backend.status(), self._backend.message(), self._backend.receive()
            )
        finally:
            if not self._config.persist:
                self.disconnect()

    def _send(self, command: str) -> Reply:
        """Send a command and return its reply.

        A 502 ("already performed") reply disconnects and sends the same
        command once more. Transport errors become a reply with status 0
        carrying the error text.
        """
        try:
            reply = self._exchange(command)
            if reply.status == ResponseCode.ERROR_ALREADY:
                logger.debug("Server rejected %r as a repeat, retrying once", command)
                self.disconnect()
                reply = self._exchange(command)
        except BackendError as e:
            logger.warning("Backend error for %r: %s", command, e.message)
            return Reply(0, e.message)
        return reply

    # -- disc IDs ----------------------------------------------------------

    def calculate_disc_id(self, offsets: Sequence[int], length: int) -> str:
        """Compute a disc ID locally."""
        return compute_disc_id(offsets, length)

    def request_disc_id(self, offsets: Sequence[int], length: int) -> str | None:
        """Ask the server to compute a disc ID. Returns None on failure."""
        reply = self._send(discid_command(offsets, length))
        if reply.status != ResponseCode.OK:
            return None
        return reply.body.strip()[-DISC_ID_LENGTH:]

    # -- lookups -----------------------------------------------------------

    def search_database(self, offsets: Sequence[int], length: int) -> QueryResult:
        """Search for discs matching a table of contents.

        Args:
            offsets: Track start offsets in frames.
            length: Disc length in seconds.
        """
        return self.search_database_with_raw_query(query_command(offsets, length))

    def search_database_with_raw_query(self, command: str) -> QueryResult:
        """Run a prebuilt ``cddb query`` command.

        Returns:
            FOUND with one summary disc per match (category, ID, artist,
            title), NOT_FOUND when nothing matched, FAILED on any error.
        """
        reply = self._send(command)
        match reply.status:
            case ResponseCode.OK:
                return QueryResult(
                    status=LookupStatus.FOUND,
                    discs=[parse_search_result(reply.body)],
                    code=reply.status,
                    message=reply.message,
                )
            case ResponseCode.OK_FOLLOWS | ResponseCode.OK_INEXACT:
                discs = [parse_search_result(line) for line in iter_lines(reply.body)]
                return QueryResult(
                    status=LookupStatus.FOUND if discs else LookupStatus.NOT_FOUND,
                    discs=discs,
                    code=reply.status,
                    message=reply.message,
                )
            case ResponseCode.OK_NOMATCH:
                return QueryResult(
                    status=LookupStatus.NOT_FOUND,
                    code=reply.status,
                    message=reply.message,
                )
        return QueryResult(
            status=LookupStatus.FAILED,
            code=reply.status or None,
            message=reply.message,
        )

    def get_details_by_disc_id(self, category: str, disc_id: str) -> ReadResult:
        """Read the full record for a disc.

        Returns:
            FOUND with the parsed disc, NOT_FOUND when the server has no such
            entry, FAILED on any other status.
        """
        reply = self._send(f"cddb read {category} {disc_id.strip()}")
        if reply.status == ResponseCode.OK_FOLLOWS:
            return ReadResult(
                status=LookupStatus.FOUND,
                disc=parse_record(reply.body, category),
                code=reply.status,
                message=reply.message,
            )
        status = (
            LookupStatus.NOT_FOUND
            if reply.status == ResponseCode.SERVER_UNAVAIL
            else LookupStatus.FAILED
        )
        return ReadResult(status=status, code=reply.status or None, message=reply.message)

    def get_details(self, disc: Disc) -> ReadResult:
        """Read the full record for a summary disc from a search."""
        return self.get_details_by_disc_id(disc.category, disc.disc_id)

    def get_categories(self) -> list[str]:
        """List the server's categories. Empty on failure."""
        reply = self._send("cddb lscat")
        if reply.status != ResponseCode.OK_FOLLOWS:
            return []
        return list(iter_lines(reply.body))

    # -- server information ------------------------------------------------

    def statistics(self) -> dict[str, str]:
        """Server statistics from ``stat``, limited to the known keys."""
        reply = self._send("stat")
        if reply.status != ResponseCode.OK_FOLLOWS:
            return {}
        stats = {}
        for line in iter_lines(reply.body):
            key, sep, value = line.partition(":")
            key = key.strip().replace(" ", "_")
            if sep and key in STATISTICS_KEYS:
                stats[key] = value.strip()
        return stats

    def sites(self) -> list[Site]:
        """Mirror sites listed by the server."""
        reply = self._send("sites")
        if reply.status != ResponseCode.OK_FOLLOWS:
            return []
        sites = []
        for line in iter_lines(reply.body):
            tokens = line.split()
            if len(tokens) < _SITE_FIELDS:
                logger.debug("Skipping short sites line: %r", line)
                continue
            site, protocol, port, address, latitude, longitude = tokens[:_SITE_FIELDS]
            sites.append(
                Site(
                    site=site,
                    protocol=protocol,
                    port=int(port) if port.isdigit() else 0,
                    address=address,
                    latitude=latitude,
                    longitude=longitude,
                    description=" ".join(tokens[_SITE_FIELDS:]),
                )
            )
        return sites

    def motd(self) -> str:
        """The server's message of the day."""
        return _text(self._send("motd"))

    def version(self) -> str:
        """The server's version string."""
        return _text(self._send("ver"))

    def help(self, cmd: str = "", subcmd: str = "") -> str:
        """Help text for a command, or the command list."""
        return _text(self._send(" ".join(filter(None, ["help", cmd, subcmd]))))

    # -- CD drive ----------------------------------------------------------

    def _read_toc(self, device: str | None) -> list[int]:
        if self._reader is None:
            raise TOCReadError("No CD reader configured")
        device = device or self._config.device
        toc = self._reader.read_track_offsets(self._config.use_sudo, device)
        if len(toc) < 2:
            raise TOCReadError(f"Reader returned no tracks for {device}")
        return toc

    def toc_for_cd(self, device: str | None = None) -> tuple[list[int], int]:
        """Track offsets and length of the disc in the drive, in one read.

        Raises:
            TOCReadError: If the TOC cannot be read.
        """
        toc = self._read_toc(device)
        return toc[:-1], toc[-1]

    def track_offsets_for_cd(self, device: str | None = None) -> list[int]:
        """Track offsets of the disc in the drive.

        Raises:
            TOCReadError: If the TOC cannot be read.
        """
        return self._read_toc(device)[:-1]

    def length_for_cd(self, device: str | None = None) -> int:
        """Length in seconds of the disc in the drive.

        Raises:
            TOCReadError: If the TOC cannot be read.
        """
        return self._read_toc(device)[-1]

    def disc_id_for_cd(self, device: str | None = None) -> str:
        """Disc ID of the disc in the drive.

        Raises:
            TOCReadError: If the TOC cannot be read.
        """
        toc = self._read_toc(device)
        return compute_disc_id(toc[:-1], toc[-1])

    def search_database_for_cd(self, device: str | None = None) -> QueryResult:
        """Search for the disc in the drive. A TOC failure is a FAILED result."""
        try:
            toc = self._read_toc(device)
        except TOCReadError as e:
            logger.warning("Failed to read CD: %s", e.message)
            return QueryResult(status=LookupStatus.FAILED, message=e.message)
        return self.search_database(toc[:-1], toc[-1])

    # -- submission --------------------------------------------------------

    def submit_disc(
        self, disc: Disc, email: str | None = None, test: bool = False
    ) -> SubmitResult:
        """Submit a disc record to the configured submit server."""
        mode = SubmitMode.TEST if test else SubmitMode.SUBMIT
        return self._submitter.submit(disc, email, mode)
