"""CDDB record text parsing and serialization.

A CDDB record ("xmcd" format) is a block of ``#`` comment lines followed by
``KEY=VALUE`` lines::

    # xmcd
    #
    # Track frame offsets:
    #    150
    #    21052
    #
    # Disc length: 3541 seconds
    #
    # Revision: 2
    # Submitted via: ExampleCD 1.0
    # Processed by: cddbd v1.5
    #
    DISCID=d50dd30f
    DTITLE=Various / Ska Island
    DYEAR=1997
    DGENRE=Ska
    TTITLE0=The Skatalites / Guns Of Navarone
    TTITLE1=Desmond Dekker / Israelites
    EXTD=
    EXTT0=
    EXTT1=
    PLAYORDER=

Long values may be split over several lines repeating the same key. Those
continuation lines are joined with a single space, never overwritten.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from cddbkit.lib.discid import derive_track_lengths
from cddbkit.models.disc import Disc, Track

logger = logging.getLogger(__name__)

_KEY_VALUE_RE = re.compile(r"^\s*([A-Za-z]+)(\d*)\s*=(.*)$")
_OFFSET_LINE_RE = re.compile(r"^#\s*(\d+)\s*$")
_INT_RE = re.compile(r"-?\d+")

_DISC_KEYS = frozenset({"discid", "dtitle", "dyear", "dgenre", "playorder", "extd"})

# Separator between artist and title in DTITLE/TTITLEn values
ARTIST_SEPARATOR = " / "

# Comment markers and the field each one fills
_FRAME_OFFSETS_MARKER = "frame offsets"
_DISC_LENGTH_MARKER = "Disc length:"
_REVISION_MARKER = "Revision:"
_SUBMITTED_VIA_MARKER = "Submitted via:"
_PROCESSED_BY_MARKER = "Processed by:"


@dataclass
class _TrackFields:
    title: list[str] = field(default_factory=list)
    extra: list[str] = field(default_factory=list)
    offset: int = 0


@dataclass
class _RecordFields:
    """Raw values collected while scanning a record."""

    values: dict[str, list[str]] = field(default_factory=dict)
    tracks: dict[int, _TrackFields] = field(default_factory=dict)
    length: int = 0
    revision: int = 0
    submitted_via: str = ""
    processed_by: str = ""

    def append(self, key: str, value: str) -> None:
        self.values.setdefault(key, []).append(value)

    def joined(self, key: str) -> str:
        return _join(self.values.get(key, []))

    def track(self, number: int) -> _TrackFields:
        return self.tracks.setdefault(number, _TrackFields())


def _join(parts: list[str]) -> str:
    return " ".join(part for part in parts if part).strip()


def _normalize_lines(text: str) -> list[str]:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"\n{2,}", "\n", text)
    return text.split("\n")


def _first_int(text: str) -> int:
    match = _INT_RE.search(text)
    return int(match.group()) if match else 0


def split_artist_title(value: str) -> tuple[str | None, str]:
    """Split ``"Artist / Title"`` into its parts.

    Only a value with exactly one separator is split.

    Returns:
        (artist, title) with artist None when the value has no single
        separator.
    """
    parts = value.split(ARTIST_SEPARATOR)
    if len(parts) == 2:
        return parts[0].strip(), parts[1].strip()
    return None, value.strip()


def _read_offsets(lines: list[str], start: int, fields: _RecordFields) -> None:
    """Consume the ``#    <offset>`` lines that follow the offsets marker."""
    track_num = 0
    for line in lines[start:]:
        match = _OFFSET_LINE_RE.match(line.strip())
        if not match or not int(match.group(1)):
            break
        fields.track(track_num).offset = int(match.group(1))
        track_num += 1


def _scan_comment(
    line: str, line_num: int, lines: list[str], fields: _RecordFields
) -> None:
    if _FRAME_OFFSETS_MARKER in line:
        _read_offsets(lines, line_num + 1, fields)
    elif (pos := line.find(_DISC_LENGTH_MARKER)) != -1:
        fields.length = _first_int(line[pos + len(_DISC_LENGTH_MARKER) :])
    elif (pos := line.find(_REVISION_MARKER)) != -1:
        fields.revision = _first_int(line[pos + len(_REVISION_MARKER) :])
    elif (pos := line.find(_SUBMITTED_VIA_MARKER)) != -1:
        fields.submitted_via = line[pos + len(_SUBMITTED_VIA_MARKER) :].strip()
    elif (pos := line.find(_PROCESSED_BY_MARKER)) != -1:
        fields.processed_by = line[pos + len(_PROCESSED_BY_MARKER) :].strip()


def _scan(text: str) -> _RecordFields:
    fields = _RecordFields()
    lines = _normalize_lines(text)

    for line_num, line in enumerate(lines):
        match = _KEY_VALUE_RE.match(line)
        if not match:
            _scan_comment(line, line_num, lines, fields)
            continue

        name, number, value = match.groups()
        name = name.lower()
        value = value.strip()

        if name == "ttitle" and number:
            fields.track(int(number)).title.append(value)
        elif name == "extt" and number:
            fields.track(int(number)).extra.append(value)
        elif not number and name in _DISC_KEYS:
            fields.append(name, value)

    return fields


def parse_record(text: str, category: str = "") -> Disc:
    """Parse CDDB record text into a Disc.

    Args:
        text: Raw record text (any line ending convention).
        category: CDDB category the record was read from. Stored verbatim,
            records never carry their own category.

    Returns:
        The parsed disc. Track lengths are derived from the frame offsets
        and the disc length.
    """
    fields = _scan(text)

    dtitle = fields.joined("dtitle")
    artist, title = split_artist_title(dtitle)
    if artist is None:
        artist = title

    track_count = max(fields.tracks) + 1 if fields.tracks else 0
    raw_tracks = [fields.tracks.get(n, _TrackFields()) for n in range(track_count)]
    lengths = derive_track_lengths([t.offset for t in raw_tracks], fields.length)

    tracks = []
    for raw, length in zip(raw_tracks, lengths, strict=True):
        track_artist, track_title = split_artist_title(_join(raw.title))
        tracks.append(
            Track(
                title=track_title,
                artist=track_artist if track_artist is not None else artist,
                offset=raw.offset,
                extra_data=_join(raw.extra),
                length=length,
            )
        )

    disc = Disc(
        disc_id=fields.joined("discid"),
        artist=artist,
        title=title,
        category=category.strip(),
        genre=fields.joined("dgenre"),
        year=fields.joined("dyear"),
        length=fields.length,
        revision=fields.revision,
        play_order=fields.joined("playorder"),
        submitted_via=fields.submitted_via,
        processed_by=fields.processed_by,
        extra_data=fields.joined("extd"),
        tracks=tracks,
    )
    logger.debug(
        "Parsed record %s (%s): %d track(s)",
        disc.disc_id.strip(),
        category or "no category",
        disc.num_tracks,
    )
    return disc


def parse_search_result(line: str) -> Disc:
    """Parse a one-line search match ``CATEGORY DISCID ARTIST / TITLE``."""
    parts = line.strip().split(" ", 2)
    category = parts[0] if parts else ""
    disc_id = parts[1] if len(parts) > 1 else ""
    artist_and_title = parts[2] if len(parts) > 2 else ""
    return parse_record(f"DISCID={disc_id}\nDTITLE={artist_and_title}", category)


def _title_value(artist: str, title: str, implied_artist: str) -> str:
    """``artist / title``, or the bare title when the artist is implied."""
    if not artist or artist == implied_artist:
        return title
    return f"{artist}{ARTIST_SEPARATOR}{title}"


def serialize_record(disc: Disc) -> str:
    """Serialize a Disc to CDDB record text.

    ``DTITLE`` is written without an artist when the artist is empty or
    equal to the title, which is how unsplittable titles parse. Track titles
    carry an ``artist / `` prefix only when the track artist differs from
    the disc artist. Lines are CRLF-terminated and the result is
    right-trimmed.
    """
    lines = ["# xmcd", "#", "# Track frame offsets:"]
    lines.extend(f"#    {track.offset}" for track in disc.tracks)
    lines += [
        "#",
        f"# Disc length: {disc.length} seconds",
        "#",
        f"# Revision: {max(disc.revision, 0)}",
        f"# Submitted via: {disc.submitted_via}",
        f"# Processed by: {disc.processed_by}",
        "#",
        f"DISCID={disc.disc_id.strip()}",
        f"DTITLE={_title_value(disc.artist, disc.title, disc.title)}",
        f"DYEAR={disc.year or ''}",
        f"DGENRE={disc.genre}",
    ]
    lines.extend(
        f"TTITLE{num}={_title_value(track.artist, track.title, disc.artist)}"
        for num, track in enumerate(disc.tracks)
    )
    lines.append(f"EXTD={disc.extra_data}")
    lines.extend(f"EXTT{num}={track.extra_data}" for num, track in enumerate(disc.tracks))
    lines.append(f"PLAYORDER={disc.play_order}")
    return "\r\n".join(lines).rstrip()


def extract_field(text: str, key: str) -> str:
    """Extract one field from record text without parsing the whole record.

    Args:
        text: Raw record text.
        key: Field key, e.g. ``"DTITLE"`` or ``"TTITLE3"``.

    Returns:
        The trimmed value of the first line starting with ``key``, or an
        empty string when no line matches.
    """
    for line in text.splitlines():
        if line.startswith(key):
            return line[len(key) + 1 :].strip()
    return ""
