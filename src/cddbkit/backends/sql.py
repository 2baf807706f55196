"""Backend serving records from a SQL database."""

import logging

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from cddbkit.backends.base import LocalBackend, Reply
from cddbkit.config import SqlConfig
from cddbkit.db import DiscRepository, create_db_engine, init_db
from cddbkit.exceptions import BackendError
from cddbkit.models.enums import ResponseCode

logger = logging.getLogger(__name__)


class SqlBackend(LocalBackend):
    """Answer CDDB commands from the ``artist``/``disc``/``track`` tables.

    An engine may be passed in directly; otherwise one is created from the
    configured URL on connect and disposed on disconnect.
    """

    interface_name = "sql"

    def __init__(self, config: SqlConfig, engine: Engine | None = None) -> None:
        super().__init__(config.motd_file)
        self._config = config
        self._engine = engine
        self._owns_engine = engine is None
        self._repository: DiscRepository | None = None

    @property
    def repository(self) -> DiscRepository:
        self.connect()
        assert self._repository is not None
        return self._repository

    def _open(self) -> None:
        try:
            if self._engine is None:
                self._engine = create_db_engine(self._config.url)
            if self._config.create_tables:
                init_db(self._engine)
        except SQLAlchemyError as e:
            raise BackendError(f"Failed to open database: {e}") from e
        self._repository = DiscRepository(self._engine)
        logger.debug("Opened SQL store %s", self._engine.url)

    def _close(self) -> None:
        if self._owns_engine and self._engine is not None:
            self._engine.dispose()
            self._engine = None
        self._repository = None

    def send(self, command: str) -> None:
        try:
            super().send(command)
        except SQLAlchemyError as e:
            logger.warning("Database error handling %r: %s", command, e)
            self._reply = Reply(ResponseCode.SERVER_CORRUPT, "Database entry is corrupt.")

    def list_categories(self) -> list[str]:
        return self.repository.list_categories()

    def find_matches(self, disc_id: str) -> list[str]:
        return [
            f"{disc.category} {disc.disc_id.strip()} {disc.artist} / {disc.title}"
            for disc in self.repository.find(disc_id)
        ]

    def load_record(self, category: str, disc_id: str) -> str | None:
        disc = self.repository.get(category, disc_id)
        return disc.to_record() if disc is not None else None

    def category_counts(self) -> dict[str, int]:
        return self.repository.category_counts()
