from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from hecate_revert.adapters.sqlalchemy import SqlAlchemyCacheStore
from hecate_revert.config import StorageConfig

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

_ENV_VARS = (
    "HECATE_URL",
    "HECATE_USERNAME",
    "HECATE_PASSWORD",
    "HECATE_REVERT_CACHE_DIR",
    "HECATE_REVERT_CONCURRENCY",
    "HECATE_REVERT_VERSION_CHECK",
)


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def storage(tmp_path: Path) -> StorageConfig:
    return StorageConfig(cache_dir=tmp_path / "cache")


@pytest.fixture
def memory_cache_store() -> Iterator[SqlAlchemyCacheStore]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    store = SqlAlchemyCacheStore(engine)
    store.initialize()
    try:
        yield store
    finally:
        engine.dispose()
