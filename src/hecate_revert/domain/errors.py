"""Error taxonomy for history inversion, caching and streaming."""

from __future__ import annotations


class RevertError(RuntimeError):
    """Base class for all reversion failures."""

    def __init__(self, message: str, *, entity_id: int | None = None) -> None:
        super().__init__(message)
        self.entity_id = entity_id


class HistoryError(RevertError):
    """Raised when a feature history cannot be inverted."""


class EmptyHistory(HistoryError):
    """Raised when a feature history has no versions."""


class InvalidHistory(HistoryError):
    """Raised when a history payload is not a list of wrapped features."""


class InvalidVersion(HistoryError):
    """Raised when a target or record version is missing or not an integer."""


class VersionOutOfRange(HistoryError):
    """Raised when the target version is beyond the end of the history."""


class MissingCreateAction(HistoryError):
    """Raised when the first version of a history is not a create."""


class DirtyRevertUnsupported(HistoryError):
    """Raised when reverting a version that has later edits layered on top."""


class UnsupportedAction(HistoryError):
    """Raised when the reverted version carries an action without an inverse."""


class StoreError(RevertError):
    """Base class for cache store I/O failures."""


class StoreInitError(StoreError):
    """Raised when the cache store schema cannot be created."""


class StoreWriteError(StoreError):
    """Raised when a history cannot be written to the cache store."""


class RemoteFetchError(RevertError):
    """Raised when a delta or feature history cannot be fetched. Aborts the batch."""

    def __init__(
        self,
        message: str,
        *,
        delta_id: int,
        entity_id: int | None = None,
    ) -> None:
        super().__init__(message, entity_id=entity_id)
        self.delta_id = delta_id


class VersionMismatch(RevertError):
    """Raised when a delta reports a version the fetched history does not end on."""

    def __init__(
        self,
        message: str,
        *,
        entity_id: int,
        delta_version: int,
        history_version: int | None,
    ) -> None:
        super().__init__(message, entity_id=entity_id)
        self.delta_version = delta_version
        self.history_version = history_version


__all__ = [
    "DirtyRevertUnsupported",
    "EmptyHistory",
    "HistoryError",
    "InvalidHistory",
    "InvalidVersion",
    "MissingCreateAction",
    "RemoteFetchError",
    "RevertError",
    "StoreError",
    "StoreInitError",
    "StoreWriteError",
    "UnsupportedAction",
    "VersionMismatch",
    "VersionOutOfRange",
]
