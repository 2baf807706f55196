"""Data models for cddbkit.

Public API:
    Disc, Track - CDDB disc record and its tracks
    ResponseCode - Protocol status codes
    LookupStatus - Outcome of client operations
    QueryResult, ReadResult, SubmitResult - Client result values
    Response - Server response 4-tuple
"""

from cddbkit.models.disc import Disc, Track
from cddbkit.models.enums import LookupStatus, ResponseCode
from cddbkit.models.results import (
    QueryResult,
    ReadResult,
    Response,
    Site,
    SubmitResult,
)

__all__ = [
    "Disc",
    "LookupStatus",
    "QueryResult",
    "ReadResult",
    "Response",
    "ResponseCode",
    "Site",
    "SubmitResult",
    "Track",
]
