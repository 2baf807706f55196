"""Database engine setup."""

from pathlib import Path

from sqlalchemy import Engine
from sqlalchemy.engine import make_url
from sqlmodel import SQLModel, create_engine

# Registers the tables on SQLModel.metadata
from cddbkit.db import models  # noqa: F401

DB_FILE = "cddb.db"


def create_db_engine(url: str) -> Engine:
    """Create an engine for a SQLAlchemy database URL.

    For file-backed SQLite the parent directory is created first.

    Args:
        url: SQLAlchemy database URL, e.g. ``sqlite:///var/lib/cddb.db``.

    Returns:
        SQLAlchemy engine.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return create_engine(url)

    if parsed.database and parsed.database != ":memory:":
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, connect_args={"check_same_thread": False})


def init_db(engine: Engine) -> None:
    """Create all tables if they don't exist.

    Args:
        engine: SQLAlchemy engine to use.
    """
    SQLModel.metadata.create_all(engine)
