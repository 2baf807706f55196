"""Import a FreeDB dump directory into the SQL disc store."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from cddbkit.db.repository import DiscRepository
from cddbkit.exceptions import RecordParseError
from cddbkit.lib.record import parse_record
from cddbkit.models.disc import DISC_ID_LENGTH, Disc

logger = logging.getLogger(__name__)

RECORD_ENCODING = "latin-1"


@dataclass
class ImportStats:
    """Counts collected while importing a dump.

    Attributes:
        imported: Records stored.
        skipped: Files that could not be read or parsed.
        by_category: Records stored per category.
    """

    imported: int = 0
    skipped: int = 0
    by_category: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.imported + self.skipped


def load_record_file(path: Path, category: str) -> Disc:
    """Read and parse one record file.

    Raises:
        RecordParseError: If the file cannot be read or holds no record.
    """
    try:
        text = path.read_text(encoding=RECORD_ENCODING)
    except OSError as e:
        raise RecordParseError(f"Failed to read {path}: {e}") from e
    disc = parse_record(text, category)
    if not disc.disc_id.strip():
        raise RecordParseError(f"{path} is not a CDDB record (no DISCID)")
    return disc


def _record_files(directory: Path) -> list[Path]:
    return sorted(
        p
        for p in directory.iterdir()
        if p.is_file() and len(p.name) == DISC_ID_LENGTH and not p.name.startswith(".")
    )


def import_directory(
    repository: DiscRepository,
    root: Path,
    categories: Iterable[str] | None = None,
    *,
    on_record: Callable[[str, Disc], None] | None = None,
) -> ImportStats:
    """Import every record under a FreeDB dump directory.

    Args:
        repository: Store receiving the records.
        root: Dump directory with one subdirectory per category.
        categories: Categories to import. Defaults to every subdirectory.
        on_record: Called with (category, disc) after each stored record.

    Returns:
        Import counts. Unreadable files are logged and counted, not raised.
    """
    if categories is None:
        categories = sorted(p.name for p in root.iterdir() if p.is_dir())

    stats = ImportStats()
    for category in categories:
        directory = root / category
        if not directory.is_dir():
            logger.warning("Could not open directory: %s", directory)
            continue

        logger.info("Importing category %s", category)
        for path in _record_files(directory):
            try:
                disc = load_record_file(path, category)
            except RecordParseError as e:
                logger.warning("Skipping %s: %s", path, e.message)
                stats.skipped += 1
                continue
            repository.add_disc(disc)
            stats.imported += 1
            stats.by_category[category] = stats.by_category.get(category, 0) + 1
            if on_record is not None:
                on_record(category, disc)

    logger.info("Imported %d record(s), skipped %d", stats.imported, stats.skipped)
    return stats
