"""CD table-of-contents readers."""

from cddbkit.models.enums import ReaderKind
from cddbkit.readers.base import TOCReader, run_reader
from cddbkit.readers.cd_discid import CdDiscIdReader
from cddbkit.readers.cdparanoia import CdParanoiaReader, parse_cdparanoia_toc
from cddbkit.readers.static import SAMPLE_TOCS, StaticReader

_READERS: dict[ReaderKind, type[CdDiscIdReader | CdParanoiaReader | StaticReader]] = {
    ReaderKind.CD_DISCID: CdDiscIdReader,
    ReaderKind.CDPARANOIA: CdParanoiaReader,
    ReaderKind.STATIC: StaticReader,
}


def create_reader(kind: ReaderKind | str = ReaderKind.CD_DISCID) -> TOCReader:
    """Create a TOC reader.

    Raises:
        ValueError: If ``kind`` is not a known reader.
    """
    return _READERS[ReaderKind(kind)]()


__all__ = [
    "SAMPLE_TOCS",
    "CdDiscIdReader",
    "CdParanoiaReader",
    "StaticReader",
    "TOCReader",
    "create_reader",
    "parse_cdparanoia_toc",
    "run_reader",
]
