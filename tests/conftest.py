"""Test fixtures and configuration."""

from collections.abc import Callable
from pathlib import Path

import pytest
from cddbkit.backends.base import Reply
from cddbkit.backends.filesystem import FilesystemBackend
from cddbkit.config import FilesystemConfig
from cddbkit.exceptions import BackendError
from cddbkit.lib.record import parse_record
from cddbkit.models.disc import Disc

SAMPLE_DISC_ID = "1b038203"
SAMPLE_OFFSETS = [150, 21052, 43715]
SAMPLE_LENGTH = 900

SAMPLE_RECORD = """\
# xmcd
#
# Track frame offsets:
#    150
#    21052
#    43715
#
# Disc length: 900 seconds
#
# Revision: 2
# Submitted via: ExampleCD 1.0
# Processed by: cddbd v1.5PL3
#
DISCID=1b038203
DTITLE=The Skatalites / Foundation Ska
DYEAR=1997
DGENRE=Ska
TTITLE0=Guns Of Navarone
TTITLE1=Desmond Dekker / Israelites
TTITLE2=Ball Of Fire
EXTD=Recorded live
EXTT0=
EXTT1=Guest vocal
EXTT2=
PLAYORDER=
"""

OTHER_RECORD = """\
# xmcd
#
# Track frame offsets:
#    150
#    30000
#
# Disc length: 700 seconds
#
# Revision: 0
#
DISCID=0602ba02
DTITLE=Miles Davis / Kind Of Blue
DYEAR=1959
DGENRE=Jazz
TTITLE0=So What
TTITLE1=Freddie Freeloader
EXTD=
EXTT0=
EXTT1=
PLAYORDER=
"""


class FakeBackend:
    """Backend answering with scripted replies, in order.

    A BackendError in the script is raised by ``send`` instead.
    """

    def __init__(self, *replies: Reply | BackendError, remote: bool = False) -> None:
        self.replies = list(replies)
        self.sent: list[str] = []
        self.remote = remote
        self.connects = 0
        self.disconnects = 0
        self._connected = False
        self._reply = Reply(0, "")

    def connect(self) -> bool:
        self.connects += 1
        self._connected = True
        return True

    def disconnect(self) -> bool:
        was_connected = self._connected
        self.disconnects += 1
        self._connected = False
        return was_connected

    def connected(self) -> bool:
        return self._connected

    def is_remote(self) -> bool:
        return self.remote

    def send(self, command: str) -> None:
        self.sent.append(command)
        assert self.replies, f"Unexpected command: {command!r}"
        reply = self.replies.pop(0)
        if isinstance(reply, BackendError):
            raise reply
        self._reply = reply

    def receive(self) -> str:
        return self._reply.body

    def status(self) -> int:
        return self._reply.status

    def message(self) -> str:
        return self._reply.message


@pytest.fixture
def make_backend() -> Callable[..., FakeBackend]:
    """Factory for scripted fake backends."""
    return FakeBackend


@pytest.fixture
def record_text() -> str:
    """Raw text of the sample record."""
    return SAMPLE_RECORD


@pytest.fixture
def sample_disc() -> Disc:
    """The sample record parsed under the rock category."""
    return parse_record(SAMPLE_RECORD, "rock")


@pytest.fixture
def freedb_dir(tmp_path: Path) -> Path:
    """A FreeDB dump directory with one rock and one jazz record."""
    root = tmp_path / "freedb"
    (root / "rock").mkdir(parents=True)
    (root / "jazz").mkdir()
    (root / "rock" / SAMPLE_DISC_ID).write_text(SAMPLE_RECORD, encoding="latin-1")
    (root / "jazz" / "0602ba02").write_text(OTHER_RECORD, encoding="latin-1")
    return root


@pytest.fixture
def filesystem_backend(freedb_dir: Path) -> FilesystemBackend:
    """A filesystem backend over the sample dump directory."""
    return FilesystemBackend(FilesystemConfig(root=freedb_dir))


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    """URL of a fresh SQLite database file."""
    return f"sqlite:///{tmp_path / 'cddb.db'}"
