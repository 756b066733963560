"""Ports for the remote editing system, the cache store and the output sink."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator

    from hecate_revert.domain.model import CacheEntry, Delta, WrappedHistory


@runtime_checkable
class RemoteHistorySource(Protocol):
    """Read access to deltas and feature histories of a Hecate server."""

    async def fetch_delta(self, delta_id: int) -> Delta: ...

    async def fetch_history(self, entity_id: int) -> WrappedHistory: ...


@runtime_checkable
class CacheStore(Protocol):
    """Single-owner scratch table holding one history per feature.

    Written during caching, read once afterwards. Not safe for concurrent phases.
    """

    def initialize(self) -> None: ...

    def put(self, entity_id: int, version: int, history: WrappedHistory) -> None: ...

    def scan_all(self) -> Iterator[CacheEntry]: ...


@runtime_checkable
class TextSink(Protocol):
    """Append-only text output, e.g. an open file or ``sys.stdout``."""

    def write(self, text: str, /) -> object: ...


__all__ = ["CacheStore", "RemoteHistorySource", "TextSink"]
