"""cddbkit - CDDB/FreeDB disc lookup toolkit.

This library computes CDDB disc IDs, reads and writes CDDB records, looks
discs up on CDDB servers through pluggable backends (CDDBP socket, HTTP,
a FreeDB dump directory or a SQL database) and serves the CDDB HTTP
interface on top of any of them.

Examples:
    Look up a disc by its table of contents:
    ```python
    from cddbkit import create_client

    with create_client("cddbp://gnudb.gnudb.org:8880") as client:
        result = client.search_database(offsets, 3541)
        for disc in result.discs:
            details = client.get_details(disc)
            print(details.disc.artist, details.disc.title)
    ```

    Compute a disc ID without a server:
    ```python
    from cddbkit import compute_disc_id

    compute_disc_id([150, 21052, 43715], 3541)
    ```
"""

from cddbkit.backends import Backend, backend_from_dsn, create_backend
from cddbkit.client import CDDBClient
from cddbkit.config import (
    CLIENT_VERSION,
    BackendConfig,
    CddbpConfig,
    ClientConfig,
    FilesystemConfig,
    HttpConfig,
    SqlConfig,
    parse_dsn,
)
from cddbkit.exceptions import (
    BackendError,
    CDDBError,
    ConfigError,
    RecordParseError,
    TOCReadError,
)
from cddbkit.lib.discid import compute_disc_id
from cddbkit.lib.record import parse_record, serialize_record
from cddbkit.models import (
    Disc,
    LookupStatus,
    QueryResult,
    ReadResult,
    Response,
    ResponseCode,
    Site,
    SubmitResult,
    Track,
)
from cddbkit.models.enums import HookKind, ReaderKind, SubmitMode
from cddbkit.readers import TOCReader, create_reader
from cddbkit.server import RequestDispatcher

__version__ = CLIENT_VERSION


def create_client(
    dsn: str,
    config: ClientConfig | None = None,
    reader: ReaderKind | str | None = None,
) -> CDDBClient:
    """Create a client for the backend a DSN names.

    Args:
        dsn: Backend DSN, e.g. ``cddbp://gnudb.gnudb.org:8880`` or
            ``filesystem:///var/lib/freedb``.
        config: Optional client configuration. Uses defaults if not provided.
        reader: Optional CD reader kind for the ``*_for_cd`` operations.

    Returns:
        A CDDBClient using the configured backend.

    Raises:
        ConfigError: If the DSN is invalid.
    """
    return CDDBClient(
        backend_from_dsn(dsn),
        reader=create_reader(reader) if reader is not None else None,
        config=config,
    )


__all__ = [
    "Backend",
    "BackendConfig",
    "BackendError",
    "CDDBClient",
    "CDDBError",
    "CddbpConfig",
    "ClientConfig",
    "ConfigError",
    "Disc",
    "FilesystemConfig",
    "HookKind",
    "HttpConfig",
    "LookupStatus",
    "QueryResult",
    "ReadResult",
    "ReaderKind",
    "RecordParseError",
    "RequestDispatcher",
    "Response",
    "ResponseCode",
    "Site",
    "SqlConfig",
    "SubmitMode",
    "SubmitResult",
    "TOCReadError",
    "TOCReader",
    "Track",
    "__version__",
    "backend_from_dsn",
    "compute_disc_id",
    "create_backend",
    "create_client",
    "parse_dsn",
    "parse_record",
    "serialize_record",
]
