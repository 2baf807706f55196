"""TOC reader using cdparanoia's query mode."""

import re

from cddbkit.exceptions import TOCReadError
from cddbkit.lib.discid import FRAMES_PER_SECOND
from cddbkit.readers.base import run_reader

# cdparanoia reports sectors from the end of the lead-in
LEAD_IN_FRAMES = 150

_TRACK_RE = re.compile(r"^\s*(\d+)\.\s+(\d+)\s+\[[^\]]*\]\s+(\d+)")
_TOTAL_RE = re.compile(r"^TOTAL\s+(\d+)")


def parse_cdparanoia_toc(output: str) -> list[int]:
    """Parse ``cdparanoia -Q`` output into offsets plus disc length.

    Track rows look like::

          1.    16503 [03:40.03]        0 [00:00.00]    no   no  2

    where the fourth column is the start sector. The ``TOTAL`` row holds
    the total sector count.
    """
    offsets: list[int] = []
    expected = 1
    for line in output.splitlines():
        if match := _TRACK_RE.match(line):
            if int(match.group(1)) != expected:
                continue
            offsets.append(int(match.group(3)) + LEAD_IN_FRAMES)
            expected += 1
        elif match := _TOTAL_RE.match(line):
            total = int(match.group(1))
            offsets.append((total + LEAD_IN_FRAMES) // FRAMES_PER_SECOND)
    return offsets


class CdParanoiaReader:
    """Read offsets with ``cdparanoia -Q``."""

    binary = "cdparanoia"

    def read_track_offsets(self, use_sudo: bool, device: str) -> list[int]:
        output = run_reader(self.binary, ["-Q", "-d", device], use_sudo=use_sudo)
        offsets = parse_cdparanoia_toc(output)
        if len(offsets) < 2:
            raise TOCReadError(f"No audio tracks found in {device}")
        return offsets
