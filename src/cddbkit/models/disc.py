"""Disc and track metadata models."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from cddbkit.lib.discid import derive_track_lengths

DISC_ID_LENGTH = 8


def format_duration(seconds: int) -> str:
    """Format seconds as HH:MM:SS."""
    hours, remainder = divmod(max(seconds, 0), 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def _to_int(value: object) -> int:
    """Coerce loosely-typed record values ('1997', '', None) to int."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if value is None:
        return 0
    text = str(value).strip()
    digits = text[1:] if text[:1] in "+-" else text
    if not digits.isdigit():
        return 0
    return int(text)


class Track(BaseModel):
    """A single track on a disc.

    Attributes:
        title: Track title.
        artist: Track artist. Empty values inherit the disc artist.
        offset: Start position in frames from the start of the disc.
        extra_data: Free text attached to the track (EXTTn).
        length: Length in seconds, derived from offsets when not given.
    """

    title: str = ""
    artist: str = ""
    offset: int = 0
    extra_data: str = ""
    length: int = 0

    @field_validator("offset", "length", mode="before")
    @classmethod
    def coerce_int(cls, v: object) -> int:
        return _to_int(v)

    @property
    def formatted_length(self) -> str:
        """Track length as HH:MM:SS."""
        return format_duration(self.length)


class Disc(BaseModel):
    """Metadata for one CDDB disc record.

    Tracks are ordered: the list index is the track number (0-based), which
    is the numbering used by TTITLEn/EXTTn keys.
    """

    disc_id: str = ""
    artist: str = ""
    title: str = ""
    category: str = ""
    genre: str = ""
    year: int = 0
    length: int = 0
    revision: int = -1
    play_order: str = ""
    submitted_via: str = ""
    processed_by: str = ""
    extra_data: str = ""
    tracks: list[Track] = Field(default_factory=list)

    @field_validator("disc_id", mode="before")
    @classmethod
    def normalize_disc_id(cls, v: object) -> str:
        """Pad or truncate the disc ID to exactly 8 characters."""
        text = "" if v is None else str(v)
        return text.ljust(DISC_ID_LENGTH)[:DISC_ID_LENGTH]

    @field_validator("year", "length", mode="before")
    @classmethod
    def coerce_int(cls, v: object) -> int:
        return _to_int(v)

    @field_validator("revision", mode="before")
    @classmethod
    def coerce_revision(cls, v: object) -> int:
        if v is None or (isinstance(v, str) and not v.strip()):
            return -1
        return _to_int(v)

    @model_validator(mode="after")
    def fill_tracks(self) -> Disc:
        """Inherit the disc artist and derive missing track lengths."""
        tracks = [
            track if track.artist else track.model_copy(update={"artist": self.artist})
            for track in self.tracks
        ]
        if tracks and self.length and not any(t.length for t in tracks):
            lengths = derive_track_lengths([t.offset for t in tracks], self.length)
            tracks = [
                track.model_copy(update={"length": length})
                for track, length in zip(tracks, lengths, strict=True)
            ]
        self.tracks = tracks
        return self

    @property
    def num_tracks(self) -> int:
        """Number of tracks on the disc."""
        return len(self.tracks)

    @property
    def offsets(self) -> list[int]:
        """Track start offsets in frames."""
        return [track.offset for track in self.tracks]

    @property
    def formatted_length(self) -> str:
        """Disc length as HH:MM:SS."""
        return format_duration(self.length)

    def get_track(self, track_num: int) -> Track | None:
        """Get a track by 0-based number, or None if out of range."""
        if 0 <= track_num < len(self.tracks):
            return self.tracks[track_num]
        return None

    def to_record(self) -> str:
        """Serialize the disc to CDDB record text."""
        from cddbkit.lib.record import serialize_record

        return serialize_record(self)
