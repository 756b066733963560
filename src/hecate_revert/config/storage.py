"""Scratch storage configuration helpers."""

from __future__ import annotations

import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env_var

CACHE_FILE_PREFIX: Final[str] = "revert."
CACHE_FILE_SUFFIX: Final[str] = ".sqlite"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    cache_dir: Path

    def resolve_cache_dir(self) -> Path:
        return self.cache_dir.expanduser().resolve()

    def ensure_cache_dir(self) -> Path:
        cache_dir = self.resolve_cache_dir()
        cache_dir.mkdir(parents=True, exist_ok=True)
        return cache_dir


def get_storage_config() -> StorageConfig:
    env_dir = optional_env_var("HECATE_REVERT_CACHE_DIR")
    cache_dir = Path(env_dir) if env_dir else Path(tempfile.gettempdir())
    return StorageConfig(cache_dir=cache_dir)
