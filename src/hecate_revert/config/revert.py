"""Reversion run defaults."""

from __future__ import annotations

from dataclasses import dataclass

from hecate_revert.domain.caching import DEFAULT_CONCURRENCY, VersionCheck
from hecate_revert.domain.history import VersionMode

from .env import int_env_var, optional_env_var
from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class RevertConfig:
    concurrency: int = DEFAULT_CONCURRENCY
    version_mode: VersionMode = VersionMode.LENIENT
    version_check: VersionCheck = VersionCheck.WARN
    fail_fast: bool = False


def get_revert_config() -> RevertConfig:
    concurrency = int_env_var("HECATE_REVERT_CONCURRENCY", DEFAULT_CONCURRENCY)
    if concurrency < 1:
        raise ConfigurationError(
            f"HECATE_REVERT_CONCURRENCY must be at least 1, got {concurrency}",
            variable="HECATE_REVERT_CONCURRENCY",
        )

    check_value = optional_env_var("HECATE_REVERT_VERSION_CHECK") or VersionCheck.WARN.value
    try:
        version_check = VersionCheck(check_value.lower())
    except ValueError as exc:
        raise ConfigurationError(
            f"Unknown version check mode: {check_value!r}",
            variable="HECATE_REVERT_VERSION_CHECK",
        ) from exc

    return RevertConfig(concurrency=concurrency, version_check=version_check)
