"""Custom exceptions for cddbkit.

All exceptions include an HTTP status_code attribute so the HTTP listener
and the CLI can report them consistently. Library internals raise these;
the client and the request dispatcher convert them into result values and
protocol responses before they reach callers.
"""


class CDDBError(Exception):
    """Base exception for cddbkit.

    Attributes:
        status_code: HTTP status code for API error responses.
    """

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigError(CDDBError):
    """Invalid backend DSN or client configuration.

    Raised when a DSN names an unknown scheme or is missing a required part.
    """

    status_code: int = 400  # Bad Request


class BackendError(CDDBError):
    """Transport-level failure talking to a backend.

    Raised for refused connections, timeouts, failed handshakes and
    unreadable storage. Never retried automatically.
    """

    status_code: int = 502  # Bad Gateway (upstream failure)


class TOCReadError(CDDBError):
    """Failed to read the table of contents from a CD-ROM drive.

    Raised when the reader binary is missing, exits with an error or
    produces no usable offsets.
    """

    status_code: int = 500  # Internal Server Error


class RecordParseError(CDDBError):
    """A CDDB record could not be turned into a disc.

    Raised by the importer for files that are not CDDB records at all.
    """

    status_code: int = 422  # Unprocessable Entity
