"""SQL disc store."""

from cddbkit.db.engine import DB_FILE, create_db_engine, init_db
from cddbkit.db.models import ArtistRow, CategoryRow, DiscRow, GenreRow, TrackRow
from cddbkit.db.repository import DiscRepository

__all__ = [
    "DB_FILE",
    "ArtistRow",
    "CategoryRow",
    "DiscRepository",
    "DiscRow",
    "GenreRow",
    "TrackRow",
    "create_db_engine",
    "init_db",
]
