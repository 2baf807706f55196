"""Database models for the SQL disc store."""

from sqlmodel import Field, SQLModel

ARTIST_NAME_LENGTH = 255
GENRE_NAME_LENGTH = 64
CATEGORY_NAME_LENGTH = 64


class ArtistRow(SQLModel, table=True):
    """A disc or track artist, shared between records."""

    __tablename__ = "artist"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=ARTIST_NAME_LENGTH, index=True)


class GenreRow(SQLModel, table=True):
    """A free-text genre (DGENRE)."""

    __tablename__ = "genre"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=GENRE_NAME_LENGTH, index=True)


class CategoryRow(SQLModel, table=True):
    """A CDDB category (rock, jazz, misc, ...)."""

    __tablename__ = "category"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=CATEGORY_NAME_LENGTH, unique=True, index=True)


class DiscRow(SQLModel, table=True):
    """One disc record. ``discid`` is unique per category."""

    __tablename__ = "disc"

    id: int | None = Field(default=None, primary_key=True)
    discid: str = Field(max_length=8, index=True)
    category_id: int = Field(foreign_key="category.id", index=True)
    artist_id: int | None = Field(default=None, foreign_key="artist.id")
    title: str = ""
    year: int = 0
    genre_id: int | None = Field(default=None, foreign_key="genre.id")
    length: int = 0
    revision: int = 0
    processed_by: str = ""
    submitted_via: str = ""
    extra_data: str = ""
    playorder: str = ""


class TrackRow(SQLModel, table=True):
    """One track of a disc. ``num`` is 1-based."""

    __tablename__ = "track"

    disc_id: int = Field(foreign_key="disc.id", primary_key=True)
    num: int = Field(primary_key=True)
    artist_id: int | None = Field(default=None, foreign_key="artist.id")
    title: str = ""
    toffset: int = 0
    extra_data: str = ""
    length: int = 0
