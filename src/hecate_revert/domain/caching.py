"""Populate a cache store with the histories touched by a range of deltas."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from hecate_revert.domain.errors import InvalidHistory, RemoteFetchError, VersionMismatch
from hecate_revert.domain.history import latest_version, unwrap_history

if TYPE_CHECKING:
    from hecate_revert.domain.model import Delta, DeltaFeature, WrappedHistory
    from hecate_revert.domain.ports import CacheStore, RemoteHistorySource

log = getLogger(__name__)

DEFAULT_CONCURRENCY = 1


class VersionCheck(StrEnum):
    """What to do when a delta's version differs from the end of the fetched history."""

    IGNORE = "ignore"
    WARN = "warn"
    STRICT = "strict"


@dataclass(slots=True)
class CacheResult:
    """Populated store plus counters describing the caching run."""

    store: CacheStore
    deltas: int = 0
    writes: int = 0
    mismatches: int = 0
    entity_ids: set[int] = field(default_factory=set[int])

    @property
    def entities(self) -> int:
        return len(self.entity_ids)


async def cache_deltas(
    source: RemoteHistorySource,
    store: CacheStore,
    *,
    start: int,
    end: int,
    concurrency: int = DEFAULT_CONCURRENCY,
    version_check: VersionCheck = VersionCheck.WARN,
) -> CacheResult:
    """Fetch deltas ``start..end`` (inclusive) and cache every touched feature history.

    Deltas are processed one after another in increasing order. Histories within a
    delta are fetched by at most ``concurrency`` workers and written in the order the
    delta lists its features, so a feature appearing in several deltas keeps the
    history and version of the last one. Any remote failure aborts the run.
    """

    _check_range(start, end)
    if concurrency < 1:
        raise ValueError(f"Concurrency must be at least 1, got {concurrency}")

    result = CacheResult(store=store)
    log.info("Caching deltas %s..%s (concurrency=%s)", start, end, concurrency)

    for delta_id in range(start, end + 1):
        delta = await _fetch_delta(source, delta_id)
        histories = await _fetch_histories(source, delta, concurrency=concurrency)

        for feature, history in zip(delta.features, histories, strict=True):
            if version_check is not VersionCheck.IGNORE and not _version_matches(
                feature, history, delta_id=delta_id, version_check=version_check
            ):
                result.mismatches += 1
            store.put(feature.id, feature.version, history)
            result.writes += 1
            result.entity_ids.add(feature.id)

        result.deltas += 1
        log.info("Cached delta %s: %s features", delta_id, len(delta.features))

    log.info(
        "Finished caching: deltas=%s, writes=%s, features=%s, mismatches=%s",
        result.deltas,
        result.writes,
        result.entities,
        result.mismatches,
    )
    return result


def _check_range(start: int, end: int) -> None:
    if start < 0 or end < 0:
        raise ValueError(f"Delta ids must be non-negative, got {start}..{end}")
    if start > end:
        raise ValueError(f"Delta range start {start} must not exceed end {end}")


async def _fetch_delta(source: RemoteHistorySource, delta_id: int) -> Delta:
    log.debug("Fetching delta %s", delta_id)
    try:
        return await source.fetch_delta(delta_id)
    except Exception as exc:  # noqa: BLE001
        raise RemoteFetchError(
            f"Delta: {delta_id} could not be fetched: {exc}",
            delta_id=delta_id,
        ) from exc


async def _fetch_history(
    source: RemoteHistorySource,
    *,
    delta_id: int,
    entity_id: int,
) -> WrappedHistory:
    log.debug("Fetching history of feature %s (delta %s)", entity_id, delta_id)
    try:
        return await source.fetch_history(entity_id)
    except Exception as exc:  # noqa: BLE001
        raise RemoteFetchError(
            f"Feature: {entity_id} history could not be fetched for delta {delta_id}: {exc}",
            delta_id=delta_id,
            entity_id=entity_id,
        ) from exc


async def _fetch_histories(
    source: RemoteHistorySource,
    delta: Delta,
    *,
    concurrency: int,
) -> list[WrappedHistory]:
    """Fetch the histories of ``delta.features`` through a bounded worker queue."""

    queue: asyncio.Queue[tuple[int, DeltaFeature]] = asyncio.Queue()
    for position, feature in enumerate(delta.features):
        queue.put_nowait((position, feature))
    fetched: dict[int, WrappedHistory] = {}

    async def worker() -> None:
        while True:
            try:
                position, feature = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            fetched[position] = await _fetch_history(
                source, delta_id=delta.id, entity_id=feature.id
            )

    workers = [
        asyncio.create_task(worker()) for _ in range(min(concurrency, len(delta.features)))
    ]
    try:
        await asyncio.gather(*workers)
    finally:
        for task in workers:
            task.cancel()
        await asyncio.gather(*workers, return_exceptions=True)

    return [fetched[position] for position in range(len(delta.features))]


def _version_matches(
    feature: DeltaFeature,
    history: WrappedHistory,
    *,
    delta_id: int,
    version_check: VersionCheck,
) -> bool:
    try:
        history_version = latest_version(unwrap_history(history))
    except InvalidHistory:
        history_version = None

    if history_version == feature.version:
        return True

    message = (
        f"Feature: {feature.id} delta {delta_id} reports version {feature.version} "
        f"but its history ends at {history_version}"
    )
    if version_check is VersionCheck.STRICT:
        raise VersionMismatch(
            message,
            entity_id=feature.id,
            delta_version=feature.version,
            history_version=history_version,
        )
    log.warning(message)
    return False


__all__ = ["DEFAULT_CONCURRENCY", "CacheResult", "VersionCheck", "cache_deltas"]
