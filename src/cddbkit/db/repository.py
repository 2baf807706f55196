"""Database repository for disc records."""

import logging

from sqlalchemy import Engine
from sqlmodel import Session, col, func, select

from cddbkit.db.models import (
    ARTIST_NAME_LENGTH,
    CATEGORY_NAME_LENGTH,
    GENRE_NAME_LENGTH,
    ArtistRow,
    CategoryRow,
    DiscRow,
    GenreRow,
    TrackRow,
)
from cddbkit.models.disc import Disc, Track

logger = logging.getLogger(__name__)

_NamedRow = type[ArtistRow] | type[GenreRow] | type[CategoryRow]


class DiscRepository:
    """Repository for disc record database operations."""

    def __init__(self, engine: Engine) -> None:
        """Initialize repository with database engine."""
        self._engine = engine

    def list_categories(self) -> list[str]:
        """List category names in alphabetical order."""
        with Session(self._engine) as session:
            stmt = select(CategoryRow.name).order_by(col(CategoryRow.name))
            return list(session.exec(stmt).all())

    def find(self, disc_id: str) -> list[Disc]:
        """Find summary records (category, ID, artist, title) for a disc ID."""
        with Session(self._engine) as session:
            stmt = (
                select(DiscRow, CategoryRow.name, ArtistRow.name)
                .join(CategoryRow, col(DiscRow.category_id) == col(CategoryRow.id))
                .join(
                    ArtistRow,
                    col(DiscRow.artist_id) == col(ArtistRow.id),
                    isouter=True,
                )
                .where(DiscRow.discid == disc_id.strip())
                .order_by(col(CategoryRow.name))
            )
            return [
                Disc(
                    disc_id=row.discid,
                    category=category,
                    artist=artist or "",
                    title=row.title,
                )
                for row, category, artist in session.exec(stmt).all()
            ]

    def get(self, category: str, disc_id: str) -> Disc | None:
        """Get a full disc record with its tracks, or None if not found."""
        with Session(self._engine) as session:
            stmt = (
                select(DiscRow, ArtistRow.name, GenreRow.name)
                .join(CategoryRow, col(DiscRow.category_id) == col(CategoryRow.id))
                .join(
                    ArtistRow,
                    col(DiscRow.artist_id) == col(ArtistRow.id),
                    isouter=True,
                )
                .join(
                    GenreRow, col(DiscRow.genre_id) == col(GenreRow.id), isouter=True
                )
                .where(CategoryRow.name == category)
                .where(DiscRow.discid == disc_id.strip())
            )
            found = session.exec(stmt).first()
            if found is None:
                return None
            row, artist, genre = found

            track_stmt = (
                select(TrackRow, ArtistRow.name)
                .join(
                    ArtistRow,
                    col(TrackRow.artist_id) == col(ArtistRow.id),
                    isouter=True,
                )
                .where(TrackRow.disc_id == row.id)
                .order_by(col(TrackRow.num))
            )
            tracks = [
                Track(
                    title=track.title,
                    artist=name or "",
                    offset=track.toffset,
                    extra_data=track.extra_data,
                    length=track.length,
                )
                for track, name in session.exec(track_stmt).all()
            ]

            return Disc(
                disc_id=row.discid,
                artist=artist or "",
                title=row.title,
                category=category,
                genre=genre or "",
                year=row.year,
                length=row.length,
                revision=row.revision,
                play_order=row.playorder,
                submitted_via=row.submitted_via,
                processed_by=row.processed_by,
                extra_data=row.extra_data,
                tracks=tracks,
            )

    def category_counts(self) -> dict[str, int]:
        """Count discs per category, alphabetically by category."""
        with Session(self._engine) as session:
            stmt = (
                select(CategoryRow.name, func.count(col(DiscRow.id)))
                .join(DiscRow, col(DiscRow.category_id) == col(CategoryRow.id))
                .group_by(col(CategoryRow.name))
                .order_by(col(CategoryRow.name))
            )
            return {name: count for name, count in session.exec(stmt).all()}

    def count(self) -> int:
        """Count all discs."""
        with Session(self._engine) as session:
            return session.exec(select(func.count()).select_from(DiscRow)).one()

    def add_disc(self, disc: Disc) -> int:
        """Store a disc record.

        Artist, genre and category rows are reused by name. A disc already
        stored under the same category and ID is left untouched.

        Args:
            disc: The disc to store. Its category must be set.

        Returns:
            Database ID of the stored (or existing) disc row.
        """
        with Session(self._engine) as session:
            category_id = _get_or_create(
                session, CategoryRow, disc.category, CATEGORY_NAME_LENGTH
            )
            disc_id = disc.disc_id.strip()
            existing = session.exec(
                select(DiscRow)
                .where(DiscRow.discid == disc_id)
                .where(DiscRow.category_id == category_id)
            ).first()
            if existing is not None and existing.id is not None:
                logger.debug("Disc %s/%s already stored", disc.category, disc_id)
                return existing.id

            row = DiscRow(
                discid=disc_id,
                category_id=category_id,
                artist_id=_get_or_create(
                    session, ArtistRow, disc.artist, ARTIST_NAME_LENGTH
                ),
                title=disc.title,
                year=disc.year,
                genre_id=_get_or_create(session, GenreRow, disc.genre, GENRE_NAME_LENGTH),
                length=disc.length,
                revision=max(disc.revision, 0),
                processed_by=disc.processed_by,
                submitted_via=disc.submitted_via,
                extra_data=disc.extra_data,
                playorder=disc.play_order,
            )
            session.add(row)
            session.flush()
            assert row.id is not None

            for num, track in enumerate(disc.tracks, start=1):
                session.add(
                    TrackRow(
                        disc_id=row.id,
                        num=num,
                        artist_id=_get_or_create(
                            session, ArtistRow, track.artist, ARTIST_NAME_LENGTH
                        ),
                        title=track.title,
                        toffset=track.offset,
                        extra_data=track.extra_data,
                        length=track.length,
                    )
                )
            session.commit()
            return row.id


def _get_or_create(session: Session, model: _NamedRow, name: str, max_length: int) -> int:
    """Get the ID of the row with this name, inserting it when missing."""
    name = name[:max_length]
    existing = session.exec(select(model).where(model.name == name)).first()
    if existing is not None and existing.id is not None:
        return existing.id
    row = model(name=name)
    session.add(row)
    session.flush()
    assert row.id is not None
    return row.id
