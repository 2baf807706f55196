"""TOC reader using the cd-discid utility."""

from cddbkit.exceptions import TOCReadError
from cddbkit.readers.base import run_reader


class CdDiscIdReader:
    """Read offsets with ``cd-discid``.

    cd-discid prints ``<discid> <ntracks> <offset1> ... <offsetN> <seconds>``.
    """

    binary = "cd-discid"

    def read_track_offsets(self, use_sudo: bool, device: str) -> list[int]:
        output = run_reader(self.binary, [device], use_sudo=use_sudo)
        lines = output.strip().splitlines()
        tokens = lines[0].split() if lines else []
        try:
            offsets = [int(token) for token in tokens[2:]]
        except ValueError as e:
            raise TOCReadError(f"Unexpected {self.binary} output: {lines[0]!r}") from e
        if len(offsets) < 2:
            raise TOCReadError(f"No disc found in {device}")
        return offsets
