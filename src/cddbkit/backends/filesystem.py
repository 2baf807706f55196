"""Backend serving a FreeDB dump directory.

The directory holds one subdirectory per category, each containing one
record file per disc, named by its disc ID::

    freedb/
        rock/d50dd30f
        jazz/820e770a
        stat.db
        motd.txt
"""

import logging
import re
from pathlib import Path

from cddbkit.backends.base import LocalBackend
from cddbkit.config import FilesystemConfig
from cddbkit.exceptions import BackendError
from cddbkit.lib.record import extract_field

logger = logging.getLogger(__name__)

RECORD_ENCODING = "latin-1"
MOTD_FILE = "motd.txt"

# Category names and disc IDs are single path components
_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class FilesystemBackend(LocalBackend):
    """Answer CDDB commands from a directory of record files."""

    interface_name = "filesystem"

    def __init__(self, config: FilesystemConfig) -> None:
        super().__init__(config.motd_file or config.root / MOTD_FILE)
        self._config = config
        self._root = config.root

    @property
    def stat_path(self) -> Path:
        return self._root / self._config.stat_file

    def _open(self) -> None:
        if not self._root.is_dir():
            raise BackendError(f"Database directory not found: {self._root}")

    def _record_path(self, category: str, disc_id: str) -> Path | None:
        if not (_NAME_RE.match(category) and _NAME_RE.match(disc_id)):
            return None
        return self._root / category / disc_id

    def list_categories(self) -> list[str]:
        return sorted(
            p.name
            for p in self._root.iterdir()
            if p.is_dir() and not p.name.startswith(".")
        )

    def find_matches(self, disc_id: str) -> list[str]:
        matches = []
        for category in self.list_categories():
            record = self.load_record(category, disc_id)
            if record is not None:
                title = extract_field(record, "DTITLE")
                matches.append(f"{category} {disc_id} {title}")
        return matches

    def load_record(self, category: str, disc_id: str) -> str | None:
        path = self._record_path(category, disc_id)
        if path is None or not path.is_file():
            return None
        try:
            return path.read_text(encoding=RECORD_ENCODING)
        except OSError as e:
            raise BackendError(f"Failed to read {path}: {e}") from e

    def category_counts(self) -> dict[str, int]:
        if self._config.use_stat_file:
            cached = self._read_stat_file()
            if cached is not None:
                return cached

        counts = {
            category: sum(1 for p in (self._root / category).iterdir() if p.is_file())
            for category in self.list_categories()
        }
        if self._config.use_stat_file:
            self._write_stat_file(counts)
        return counts

    def _read_stat_file(self) -> dict[str, int] | None:
        """Read cached counts, or None when the cache is missing or stale.

        The cache is stale when a category has no count in it.
        """
        if not self.stat_path.is_file():
            return None
        counts: dict[str, int] = {}
        for line in self.stat_path.read_text(encoding="utf-8").splitlines():
            key, sep, value = line.partition("=")
            if sep and value.strip().lstrip("-").isdigit():
                counts[key.strip()] = int(value)
        categories = self.list_categories()
        if any(counts.get(category, -1) < 0 for category in categories):
            logger.debug("Stat cache %s is stale", self.stat_path)
            return None
        return {category: counts[category] for category in categories}

    def _write_stat_file(self, counts: dict[str, int]) -> None:
        text = "".join(f"{category}={count}\r\n" for category, count in counts.items())
        try:
            self.stat_path.write_text(text, encoding="utf-8")
        except OSError as e:
            logger.warning("Failed to write stat cache %s: %s", self.stat_path, e)
