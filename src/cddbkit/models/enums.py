"""Enumerations for cddbkit domain models."""

from enum import IntEnum, StrEnum


class ResponseCode(IntEnum):
    """CDDB protocol status codes.

    Several codes share a value (e.g. 402 is both a generic server error and
    "already shook hands"); the first name defined is the canonical one.
    """

    OK = 200
    OK_SET = 201
    OK_RO = 201
    OK_NOMATCH = 202
    OK_FOLLOWS = 210
    OK_INEXACT = 211
    SERVER_UNAVAIL = 401
    SERVER_ERROR = 402
    SERVER_ALREADY = 402
    SERVER_CORRUPT = 403
    SERVER_CGIERR = 408
    SERVER_NOHANDSHAKE = 409
    SERVER_BADHANDSHAKE = 431
    SERVER_NOPERM = 432
    SERVER_TOOMANYUSERS = 433
    SERVER_SYSLOAD = 434
    ERROR_SYNTAX = 500
    ERROR_UNRECOGNIZED = 500
    ERROR_EMPTY = 500
    ERROR_ILLEGAL = 501
    ERROR_ALREADY = 502
    ERROR_TIMEOUT = 530

    @staticmethod
    def is_multiline(code: int) -> bool:
        """Whether a status code announces a payload ended by a lone '.'."""
        return code // 10 % 10 == 1


class LookupStatus(StrEnum):
    """Outcome of a client operation."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    FAILED = "failed"


class BackendKind(StrEnum):
    """Supported backend transports and stores."""

    CDDBP = "cddbp"
    HTTP = "http"
    FILESYSTEM = "filesystem"
    SQL = "sql"


class ReaderKind(StrEnum):
    """Supported CD table-of-contents readers."""

    CD_DISCID = "cd-discid"
    CDPARANOIA = "cdparanoia"
    STATIC = "static"


class SubmitMode(StrEnum):
    """Submission mode sent in the Submit-Mode header."""

    SUBMIT = "submit"
    TEST = "test"


class HookKind(StrEnum):
    """Points in the server request cycle where hooks run."""

    REQUEST = "request"
    COMMAND = "command"
    RESPONSE = "response"
