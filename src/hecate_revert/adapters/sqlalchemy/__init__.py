"""SQLAlchemy adapter package for the reversion cache."""

from __future__ import annotations

from .cache_store import SqlAlchemyCacheStore, ephemeral_cache_store
from .mappings import JsonDocument, features_table, metadata

__all__ = [
    "JsonDocument",
    "SqlAlchemyCacheStore",
    "ephemeral_cache_store",
    "features_table",
    "metadata",
]
