"""Tests for importing a FreeDB dump into the SQL store."""

from collections.abc import Iterator
from pathlib import Path

import pytest
from cddbkit.db import DiscRepository, create_db_engine, init_db
from cddbkit.exceptions import RecordParseError
from cddbkit.models.disc import Disc
from cddbkit.services.importer import ImportStats, import_directory, load_record_file


@pytest.fixture
def repository(sqlite_url: str) -> Iterator[DiscRepository]:
    """A repository over an empty SQLite database."""
    engine = create_db_engine(sqlite_url)
    init_db(engine)
    yield DiscRepository(engine)
    engine.dispose()


class TestLoadRecordFile:
    """Tests for load_record_file."""

    def test_loads_record(self, freedb_dir: Path) -> None:
        """A record file parses into a disc of the given category."""
        disc = load_record_file(freedb_dir / "rock" / "1b038203", "rock")
        assert disc.category == "rock"
        assert disc.disc_id == "1b038203"
        assert disc.num_tracks == 3

    def test_not_a_record(self, tmp_path: Path) -> None:
        """Files without a DISCID are rejected."""
        path = tmp_path / "deadbeef"
        path.write_text("just some notes\n")
        with pytest.raises(RecordParseError, match="not a CDDB record"):
            load_record_file(path, "misc")

    def test_missing_file(self, tmp_path: Path) -> None:
        """Unreadable files are rejected."""
        with pytest.raises(RecordParseError, match="Failed to read"):
            load_record_file(tmp_path / "missing", "misc")


class TestImportDirectory:
    """Tests for import_directory."""

    def test_imports_all_categories(
        self, repository: DiscRepository, freedb_dir: Path
    ) -> None:
        """Every category directory is imported."""
        stats = import_directory(repository, freedb_dir)

        assert stats == ImportStats(imported=2, skipped=0, by_category={"jazz": 1, "rock": 1})
        assert repository.list_categories() == ["jazz", "rock"]
        disc = repository.get("jazz", "0602ba02")
        assert disc is not None
        assert disc.title == "Kind Of Blue"

    def test_skips_bad_files(self, repository: DiscRepository, freedb_dir: Path) -> None:
        """Bad record files are counted, other files are ignored."""
        (freedb_dir / "rock" / "ffffffff").write_text("garbage\n")
        (freedb_dir / "rock" / "README").write_text("not a record\n")
        (freedb_dir / "rock" / ".hidden1").write_text("DISCID=12345678\n")

        stats = import_directory(repository, freedb_dir)

        assert stats.imported == 2
        assert stats.skipped == 1
        assert stats.total == 3

    def test_category_filter(self, repository: DiscRepository, freedb_dir: Path) -> None:
        """Only the listed categories are imported, missing ones are skipped."""
        stats = import_directory(repository, freedb_dir, ["rock", "blues"])

        assert stats.by_category == {"rock": 1}
        assert repository.list_categories() == ["rock"]

    def test_on_record_callback(
        self, repository: DiscRepository, freedb_dir: Path
    ) -> None:
        """The callback sees each stored record."""
        seen: list[tuple[str, str]] = []

        def on_record(category: str, disc: Disc) -> None:
            seen.append((category, disc.disc_id))

        import_directory(repository, freedb_dir, on_record=on_record)

        assert seen == [("jazz", "0602ba02"), ("rock", "1b038203")]

    def test_reimport_is_idempotent(
        self, repository: DiscRepository, freedb_dir: Path
    ) -> None:
        """Importing the same dump twice keeps one row per disc."""
        import_directory(repository, freedb_dir)
        import_directory(repository, freedb_dir)
        assert repository.count() == 2
