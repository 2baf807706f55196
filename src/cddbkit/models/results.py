"""Result models returned by the client and the server dispatcher."""

from __future__ import annotations

from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field

from cddbkit.models.disc import Disc
from cddbkit.models.enums import LookupStatus


class QueryResult(BaseModel):
    """Result of a disc search.

    A search with no match is NOT_FOUND with an empty disc list, never a
    failure. FAILED carries the server (or transport) message.

    Attributes:
        status: Outcome of the search.
        discs: Matching discs (summary records: category, id, artist, title).
        code: Protocol status code, None when the transport failed.
        message: Status message echoed from the server or the error text.
    """

    model_config = ConfigDict(frozen=True)

    status: LookupStatus
    discs: list[Disc] = Field(default_factory=list)
    code: int | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        """True unless the search failed."""
        return self.status != LookupStatus.FAILED


class ReadResult(BaseModel):
    """Result of reading one full disc record.

    Attributes:
        status: Outcome of the read.
        disc: The parsed disc, only set when status is FOUND.
        code: Protocol status code, None when the transport failed.
        message: Status message echoed from the server or the error text.
    """

    model_config = ConfigDict(frozen=True)

    status: LookupStatus
    disc: Disc | None = None
    code: int | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        """True unless the read failed."""
        return self.status != LookupStatus.FAILED


class SubmitResult(BaseModel):
    """Result of submitting a disc record upstream."""

    model_config = ConfigDict(frozen=True)

    status: LookupStatus
    code: int | None = None
    message: str = ""

    @property
    def accepted(self) -> bool:
        """True when the submit server accepted the record."""
        return self.status == LookupStatus.FOUND


class Site(BaseModel):
    """A CDDB mirror site as listed by the ``sites`` command."""

    model_config = ConfigDict(frozen=True)

    site: str
    protocol: str
    port: int
    address: str
    latitude: str
    longitude: str
    description: str = ""


class Response(NamedTuple):
    """A server response: status, message, payload and terminator flag.

    A NamedTuple so hooks can return a plain 4-tuple.
    """

    status: int
    message: str
    data: str = ""
    terminated: bool = False

    def render(self) -> str:
        """Render the response as CRLF-separated protocol text."""
        lines = [f"{self.status} {self.message}"]
        if self.data:
            lines.extend(self.data.replace("\r\n", "\n").rstrip("\n").split("\n"))
        if self.terminated:
            lines.append(".")
        return "\r\n".join(lines) + "\r\n"
