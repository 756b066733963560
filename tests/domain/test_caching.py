"""Caching pipeline behaviour against an in-memory history source."""

from __future__ import annotations

import asyncio
import logging

import pytest

from hecate_revert.domain.caching import CacheResult, VersionCheck, cache_deltas
from hecate_revert.domain.errors import RemoteFetchError, VersionMismatch
from tests.helpers.histories import FakeHistorySource, MemoryCacheStore, linear_history


def _run(
    source: FakeHistorySource,
    store: MemoryCacheStore,
    *,
    start: int,
    end: int,
    concurrency: int = 1,
    version_check: VersionCheck = VersionCheck.WARN,
) -> CacheResult:
    return asyncio.run(
        cache_deltas(
            source,
            store,
            start=start,
            end=end,
            concurrency=concurrency,
            version_check=version_check,
        )
    )


def _source() -> FakeHistorySource:
    return FakeHistorySource(
        deltas={
            5: [(10, 1), (11, 2)],
            6: [(12, 2)],
            7: [(11, 3), (13, 1)],
        },
        histories={
            10: linear_history(10, "create"),
            11: linear_history(11, "create", "modify", "delete"),
            12: linear_history(12, "create", "modify"),
            13: linear_history(13, "create"),
        },
    )


def test_cache_deltas_fetches_sequentially_in_order() -> None:
    source = _source()
    store = MemoryCacheStore()

    result = _run(source, store, start=5, end=7)

    assert source.calls == [
        ("delta", 5),
        ("history", 10),
        ("history", 11),
        ("delta", 6),
        ("history", 12),
        ("delta", 7),
        ("history", 11),
        ("history", 13),
    ]
    assert source.max_in_flight == 1
    assert result.store is store
    assert result.deltas == 3
    assert result.writes == 5
    assert result.entities == 4


def test_cache_deltas_last_delta_wins_for_repeated_feature() -> None:
    source = _source()
    store = MemoryCacheStore()

    _run(source, store, start=5, end=7)

    assert sorted(store.rows) == [10, 11, 12, 13]
    assert store.rows[11].version == 3


def test_cache_deltas_stores_delta_version_not_history_maximum(
    caplog: pytest.LogCaptureFixture,
) -> None:
    source = _source()
    store = MemoryCacheStore()

    with caplog.at_level(logging.WARNING):
        result = _run(source, store, start=5, end=5)

    assert store.rows[11].version == 2
    assert result.mismatches == 1
    assert "Feature: 11 delta 5 reports version 2 but its history ends at 3" in caplog.text


def test_cache_deltas_ignore_skips_version_check(caplog: pytest.LogCaptureFixture) -> None:
    source = _source()

    with caplog.at_level(logging.WARNING):
        result = _run(
            source, MemoryCacheStore(), start=5, end=5, version_check=VersionCheck.IGNORE
        )

    assert result.mismatches == 0
    assert "reports version" not in caplog.text


def test_cache_deltas_strict_version_check_aborts() -> None:
    source = _source()
    store = MemoryCacheStore()

    with pytest.raises(VersionMismatch) as excinfo:
        _run(source, store, start=5, end=5, version_check=VersionCheck.STRICT)

    assert excinfo.value.entity_id == 11
    assert excinfo.value.delta_version == 2
    assert excinfo.value.history_version == 3
    assert list(store.rows) == [10]


def test_cache_deltas_aborts_on_delta_failure() -> None:
    source = _source()
    source.failing_deltas.add(6)
    store = MemoryCacheStore()

    with pytest.raises(RemoteFetchError, match="Delta: 6") as excinfo:
        _run(source, store, start=5, end=7)

    assert excinfo.value.delta_id == 6
    assert excinfo.value.entity_id is None
    assert ("delta", 7) not in source.calls
    assert sorted(store.rows) == [10, 11]


def test_cache_deltas_aborts_on_history_failure() -> None:
    source = _source()
    source.failing_features.add(12)

    with pytest.raises(RemoteFetchError, match="Feature: 12") as excinfo:
        _run(source, MemoryCacheStore(), start=5, end=7)

    assert excinfo.value.delta_id == 6
    assert excinfo.value.entity_id == 12
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_cache_deltas_bounded_concurrency_keeps_write_order() -> None:
    histories = {feature_id: linear_history(feature_id, "create") for feature_id in range(1, 9)}
    source = FakeHistorySource(
        deltas={1: [(feature_id, 1) for feature_id in (5, 3, 8, 1, 7, 2, 6, 4)]},
        histories=histories,
    )
    written: list[int] = []

    class RecordingStore(MemoryCacheStore):
        def put(self, entity_id: int, version: int, history: list[dict[str, object]]) -> None:
            written.append(entity_id)
            super().put(entity_id, version, history)

    _run(source, RecordingStore(), start=1, end=1, concurrency=3)

    assert 1 < source.max_in_flight <= 3
    assert written == [5, 3, 8, 1, 7, 2, 6, 4]


def test_cache_deltas_handles_empty_delta() -> None:
    source = FakeHistorySource(deltas={}, histories={})

    result = _run(source, MemoryCacheStore(), start=1, end=2)

    assert result.deltas == 2
    assert result.writes == 0


@pytest.mark.parametrize(("start", "end"), [(3, 2), (-1, 2)])
def test_cache_deltas_rejects_invalid_range(start: int, end: int) -> None:
    with pytest.raises(ValueError, match="Delta"):
        _run(FakeHistorySource(deltas={}, histories={}), MemoryCacheStore(), start=start, end=end)


def test_cache_deltas_rejects_zero_concurrency() -> None:
    with pytest.raises(ValueError, match="Concurrency"):
        _run(
            FakeHistorySource(deltas={}, histories={}),
            MemoryCacheStore(),
            start=1,
            end=1,
            concurrency=0,
        )
