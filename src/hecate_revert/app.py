"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from hecate_revert.adapters.hecate import HecateClient
from hecate_revert.adapters.sqlalchemy import ephemeral_cache_store
from hecate_revert.config import get_hecate_config, get_revert_config
from hecate_revert.domain.caching import CacheResult, cache_deltas
from hecate_revert.domain.ports import RemoteHistorySource
from hecate_revert.domain.reversion import ReversionFailure, iterate_reversions

if TYPE_CHECKING:
    from hecate_revert.config import HecateConfig, RevertConfig, StorageConfig
    from hecate_revert.domain.ports import CacheStore, TextSink

SourceFactory = Callable[[], AbstractAsyncContextManager[RemoteHistorySource]]


log = getLogger(__name__)


@dataclass(slots=True)
class RevertSummary:
    """Outcome of reverting a range of deltas."""

    deltas: int
    cached: int
    written: int
    failures: list[ReversionFailure] = field(default_factory=list["ReversionFailure"])


def _hecate_source_factory(config: HecateConfig | None) -> SourceFactory:
    def factory() -> HecateClient:
        return HecateClient(config=config or get_hecate_config())

    return factory


async def _cache_range(
    source_factory: SourceFactory,
    store: CacheStore,
    *,
    start: int,
    end: int,
    config: RevertConfig,
) -> CacheResult:
    async with source_factory() as source:
        return await cache_deltas(
            source,
            store,
            start=start,
            end=end,
            concurrency=config.concurrency,
            version_check=config.version_check,
        )


def revert_deltas(
    *,
    start: int,
    end: int,
    sink: TextSink,
    source_factory: SourceFactory | None = None,
    hecate_config: HecateConfig | None = None,
    revert_config: RevertConfig | None = None,
    storage: StorageConfig | None = None,
) -> RevertSummary:
    """Write an inverse feature for every feature edited in deltas ``start..end``.

    Histories are cached in a scratch store that is removed when the run ends,
    whether it succeeds or not. Caching completes before any inverse is computed.
    """

    config = revert_config or get_revert_config()
    effective_source = source_factory or _hecate_source_factory(hecate_config)
    log.info("Starting revert: deltas=%s..%s", start, end)

    with ephemeral_cache_store(storage=storage) as store:
        cached = asyncio.run(
            _cache_range(effective_source, store, start=start, end=end, config=config)
        )
        reversion = iterate_reversions(
            store,
            sink,
            fail_fast=config.fail_fast,
            mode=config.version_mode,
        )

    summary = RevertSummary(
        deltas=cached.deltas,
        cached=cached.entities,
        written=reversion.written,
        failures=reversion.failures,
    )
    log.info(
        "Finished revert: deltas=%s, cached=%s, written=%s, skipped=%s",
        summary.deltas,
        summary.cached,
        summary.written,
        len(summary.failures),
    )
    return summary
