"""In-memory TOC reader for tests and demos."""

from collections.abc import Mapping

from cddbkit.exceptions import TOCReadError

# Three sample discs: offsets of every track followed by the length in seconds
SAMPLE_TOCS: dict[str, list[int]] = {
    "/dev/acd0": [
        150, 15471, 34414, 43587, 55098, 65975, 83623, 92225, 105299,
        116339, 129797, 2142,
    ],
    "/dev/acd1": [
        150, 21052, 43715, 58057, 71430, 92865, 117600, 131987, 150625,
        163292, 181490, 195685, 210197, 233230, 249257, 3541,
    ],
    "/dev/acd2": [
        150, 20820, 45079, 64070, 79721, 103706, 121416, 145377, 164139,
        185379, 204670, 222934, 249264, 271989, 289983, 4121,
    ],
}  # fmt: skip


class StaticReader:
    """Serve fixed TOCs keyed by device path."""

    def __init__(self, tocs: Mapping[str, list[int]] | None = None) -> None:
        self._tocs = dict(SAMPLE_TOCS if tocs is None else tocs)

    def read_track_offsets(self, use_sudo: bool, device: str) -> list[int]:
        toc = self._tocs.get(device)
        if not toc:
            raise TOCReadError(f"No disc found in {device}")
        return list(toc)
