"""SQLite-backed scratch store for feature histories."""

from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, event, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from hecate_revert.config.storage import (
    CACHE_FILE_PREFIX,
    CACHE_FILE_SUFFIX,
    StorageConfig,
    get_storage_config,
)
from hecate_revert.domain.errors import StoreError, StoreInitError, StoreWriteError
from hecate_revert.domain.model import CacheEntry

from .mappings import features_table, metadata

if TYPE_CHECKING:
    from collections.abc import Iterator
    from sqlite3 import Connection as SQLiteConnection

    from sqlalchemy.engine import Engine
    from sqlalchemy.pool import ConnectionPoolEntry

    from hecate_revert.domain.model import WrappedHistory

log = getLogger(__name__)


class SqlAlchemyCacheStore:
    """``CacheStore`` over a single ``features`` table."""

    def __init__(self, engine: Engine, *, path: Path | None = None) -> None:
        self._engine = engine
        self.path = path

    def initialize(self) -> None:
        try:
            metadata.create_all(self._engine)
        except SQLAlchemyError as exc:
            raise StoreInitError(f"Could not create cache schema: {exc}") from exc

    def put(self, entity_id: int, version: int, history: WrappedHistory) -> None:
        statement = sqlite_insert(features_table).values(
            id=entity_id, version=version, history=history
        )
        statement = statement.on_conflict_do_update(
            index_elements=[features_table.c.id],
            set_={
                "version": statement.excluded.version,
                "history": statement.excluded.history,
            },
        )
        try:
            with self._engine.begin() as connection:
                connection.execute(statement)
        except SQLAlchemyError as exc:
            raise StoreWriteError(
                f"Feature: {entity_id} could not be cached: {exc}", entity_id=entity_id
            ) from exc

    def scan_all(self) -> Iterator[CacheEntry]:
        """Yield cached entries in feature id order, reading rows lazily."""

        statement = select(
            features_table.c.id,
            features_table.c.version,
            features_table.c.history,
        ).order_by(features_table.c.id)
        try:
            with self._engine.connect() as connection:
                for row in connection.execute(statement):
                    yield CacheEntry(id=row.id, version=row.version, history=row.history)
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not read cache: {exc}") from exc

    def count(self) -> int:
        with self._engine.connect() as connection:
            return connection.execute(select(func.count()).select_from(features_table)).scalar_one()


def _set_scratch_pragmas(dbapi_connection: SQLiteConnection, _record: ConnectionPoolEntry) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=MEMORY")
    cursor.execute("PRAGMA synchronous=OFF")
    cursor.close()


def _create_cache_file(storage: StorageConfig) -> Path:
    try:
        cache_dir = storage.ensure_cache_dir()
        handle, name = tempfile.mkstemp(
            prefix=CACHE_FILE_PREFIX, suffix=CACHE_FILE_SUFFIX, dir=cache_dir
        )
    except OSError as exc:
        raise StoreInitError(f"Could not create cache file in {storage.cache_dir}: {exc}") from exc
    os.close(handle)
    return Path(name)


@contextmanager
def ephemeral_cache_store(
    *,
    storage: StorageConfig | None = None,
) -> Iterator[SqlAlchemyCacheStore]:
    """Create a uniquely named cache file, yield its store and always delete it."""

    path = _create_cache_file(storage or get_storage_config())
    engine = create_engine(f"sqlite+pysqlite:///{path}", future=True)
    event.listen(engine, "connect", _set_scratch_pragmas)
    log.debug("Created reversion cache %s", path)
    try:
        store = SqlAlchemyCacheStore(engine, path=path)
        store.initialize()
        yield store
    finally:
        engine.dispose()
        path.unlink(missing_ok=True)
        log.debug("Removed reversion cache %s", path)
