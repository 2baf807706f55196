"""Tests for the SQL disc store and its backend."""

from collections.abc import Iterator
from unittest.mock import patch

import pytest
from cddbkit.backends.sql import SqlBackend
from cddbkit.config import SqlConfig
from cddbkit.db import DiscRepository, create_db_engine, init_db
from cddbkit.db.models import ARTIST_NAME_LENGTH
from cddbkit.lib.record import parse_record
from cddbkit.models.disc import Disc, Track
from sqlalchemy import Engine
from sqlalchemy.exc import OperationalError


@pytest.fixture
def engine(sqlite_url: str) -> Iterator[Engine]:
    """A SQLite engine with all tables created."""
    engine = create_db_engine(sqlite_url)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def repository(engine: Engine) -> DiscRepository:
    """A repository over an empty database."""
    return DiscRepository(engine)


class TestDiscRepository:
    """Tests for DiscRepository."""

    def test_add_and_get(self, repository: DiscRepository, sample_disc: Disc) -> None:
        """A stored disc should read back with its tracks."""
        repository.add_disc(sample_disc)

        disc = repository.get("rock", "1b038203")

        assert disc is not None
        assert disc.artist == "The Skatalites"
        assert disc.title == "Foundation Ska"
        assert disc.year == 1997
        assert disc.genre == "Ska"
        assert disc.revision == 2
        assert disc.extra_data == "Recorded live"
        assert [t.title for t in disc.tracks] == [
            "Guns Of Navarone",
            "Israelites",
            "Ball Of Fire",
        ]
        assert disc.tracks[1].artist == "Desmond Dekker"
        assert disc.tracks[1].extra_data == "Guest vocal"
        assert disc.offsets == [150, 21052, 43715]
        assert [t.length for t in disc.tracks] == [279, 302, 318]

    def test_get_missing(self, repository: DiscRepository, sample_disc: Disc) -> None:
        """Unknown discs and categories should give None."""
        repository.add_disc(sample_disc)
        assert repository.get("rock", "ffffffff") is None
        assert repository.get("jazz", "1b038203") is None

    def test_add_is_idempotent(
        self, repository: DiscRepository, sample_disc: Disc
    ) -> None:
        """Adding the same disc twice should keep one row."""
        first = repository.add_disc(sample_disc)
        second = repository.add_disc(sample_disc)

        assert first == second
        assert repository.count() == 1

    def test_find_across_categories(
        self, repository: DiscRepository, sample_disc: Disc
    ) -> None:
        """find should return one summary per category."""
        repository.add_disc(sample_disc)
        repository.add_disc(sample_disc.model_copy(update={"category": "misc"}))

        matches = repository.find("1b038203")

        assert [(d.category, d.artist, d.title) for d in matches] == [
            ("misc", "The Skatalites", "Foundation Ska"),
            ("rock", "The Skatalites", "Foundation Ska"),
        ]

    def test_categories_and_counts(
        self, repository: DiscRepository, sample_disc: Disc
    ) -> None:
        """Categories and counts should be sorted by name."""
        repository.add_disc(sample_disc)
        repository.add_disc(
            Disc(disc_id="0602ba02", category="jazz", artist="Miles Davis", title="KOB")
        )

        assert repository.list_categories() == ["jazz", "rock"]
        assert repository.category_counts() == {"jazz": 1, "rock": 1}
        assert repository.count() == 2

    def test_long_artist_is_truncated(self, repository: DiscRepository) -> None:
        """Artist names longer than the column should be truncated."""
        long_name = "x" * (ARTIST_NAME_LENGTH + 50)
        repository.add_disc(
            Disc(
                disc_id="12345678",
                category="misc",
                artist=long_name,
                title="T",
                tracks=[Track(title="One")],
            )
        )

        disc = repository.get("misc", "12345678")

        assert disc is not None
        assert disc.artist == "x" * ARTIST_NAME_LENGTH


class TestSqlBackend:
    """Tests for SqlBackend."""

    @pytest.fixture
    def backend(self, sqlite_url: str, sample_disc: Disc) -> Iterator[SqlBackend]:
        """A backend over a database holding the sample disc."""
        backend = SqlBackend(SqlConfig(url=sqlite_url))
        backend.repository.add_disc(sample_disc)
        yield backend
        backend.disconnect()

    def test_read(self, backend: SqlBackend) -> None:
        """cddb read should rebuild the record from rows."""
        backend.send("cddb read rock 1b038203")

        assert backend.status() == 210
        disc = parse_record(backend.receive(), "rock")
        assert disc.artist == "The Skatalites"
        assert disc.year == 1997
        assert disc.tracks[1].artist == "Desmond Dekker"
        assert disc.offsets == [150, 21052, 43715]

    def test_read_missing(self, backend: SqlBackend) -> None:
        """A missing disc should answer 401."""
        backend.send("cddb read rock ffffffff")
        assert backend.status() == 401

    def test_query(self, backend: SqlBackend) -> None:
        """A single match is answered on the status line."""
        backend.send("cddb query 1b038203 3 150 21052 43715 900")
        assert backend.status() == 200
        assert backend.message() == "rock 1b038203 The Skatalites / Foundation Ska"

    def test_lscat(self, backend: SqlBackend) -> None:
        """lscat should list stored categories."""
        backend.send("cddb lscat")
        assert backend.status() == 210
        assert backend.receive() == "rock"

    def test_stat(self, backend: SqlBackend) -> None:
        """stat should count stored discs."""
        backend.send("stat")
        assert backend.status() == 210
        assert "    interface: sql" in backend.receive()
        assert "Database entries: 1" in backend.receive()

    def test_ver(self, backend: SqlBackend) -> None:
        """ver should name the backend."""
        backend.send("ver")
        assert backend.message() == "cddbkit/SqlBackend v0.4.0"

    def test_database_error(self, backend: SqlBackend) -> None:
        """Database errors should answer 403."""
        error = OperationalError("SELECT", {}, Exception("disk I/O error"))
        with patch.object(DiscRepository, "get", side_effect=error):
            backend.send("cddb read rock 1b038203")

        assert backend.status() == 403
        assert backend.message() == "Database entry is corrupt."

    def test_disconnect_releases_engine(self, backend: SqlBackend) -> None:
        """Disconnecting should close the store and reconnect on demand."""
        assert backend.connected() is True
        assert backend.disconnect() is True
        assert backend.connected() is False

        backend.send("cddb lscat")
        assert backend.receive() == "rock"

    def test_shared_engine(self, engine: Engine, sample_disc: Disc) -> None:
        """A passed engine should be used and left open."""
        DiscRepository(engine).add_disc(sample_disc)
        backend = SqlBackend(SqlConfig(url="sqlite://"), engine=engine)

        backend.send("cddb lscat")
        backend.disconnect()

        assert backend.receive() == "rock"
        assert DiscRepository(engine).count() == 1
