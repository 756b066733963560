"""Application configuration helpers."""

from __future__ import annotations

from .errors import ConfigurationError, MissingConfigurationError
from .hecate import DEFAULT_HECATE_URL, HecateConfig, get_hecate_config
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .revert import RevertConfig, get_revert_config
from .storage import StorageConfig, get_storage_config

__all__ = [
    "DEFAULT_HECATE_URL",
    "ConfigurationError",
    "HecateConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "RevertConfig",
    "StorageConfig",
    "get_hecate_config",
    "get_revert_config",
    "get_storage_config",
]
