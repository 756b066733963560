"""Normalisation and validation of a single feature history."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from hecate_revert.domain.errors import (
    DirtyRevertUnsupported,
    EmptyHistory,
    InvalidHistory,
    InvalidVersion,
    MissingCreateAction,
    VersionOutOfRange,
)
from hecate_revert.domain.model import Action, VersionRecord

if TYPE_CHECKING:
    from collections.abc import Iterable

    from hecate_revert.domain.model import EntityHistory


class VersionMode(StrEnum):
    """How records without a ``version`` are treated while sorting.

    ``LENIENT`` sorts them as version 1, which is what legacy histories rely on.
    ``STRICT`` rejects them and also rejects duplicate versions.
    """

    LENIENT = "lenient"
    STRICT = "strict"


DEFAULT_MISSING_VERSION = 1


def unwrap_history(payload: Iterable[Any]) -> list[VersionRecord]:
    """Strip the ``{"feat": ...}`` wrappers returned by the history endpoint."""

    records: list[VersionRecord] = []
    for position, entry in enumerate(payload):
        if not isinstance(entry, Mapping) or not isinstance(entry.get("feat"), Mapping):
            raise InvalidHistory(f"History entry {position} is not a wrapped feature")
        records.append(VersionRecord.from_feature(entry["feat"]))
    return records


def sort_history(
    history: Iterable[VersionRecord],
    *,
    mode: VersionMode = VersionMode.LENIENT,
) -> list[VersionRecord]:
    """Return a new list ordered by ascending version."""

    records = list(history)
    if mode is VersionMode.STRICT:
        seen: set[int] = set()
        for record in records:
            if record.version is None:
                raise InvalidVersion(
                    f"Feature: {record.id} has a history entry without a version",
                    entity_id=record.id,
                )
            if record.version in seen:
                raise InvalidHistory(
                    f"Feature: {record.id} has duplicate version {record.version}",
                    entity_id=record.id,
                )
            seen.add(record.version)
    return sorted(records, key=_sort_key)


def _sort_key(record: VersionRecord) -> int:
    return DEFAULT_MISSING_VERSION if record.version is None else record.version


def parse_target_version(version: object, *, entity_id: int | None = None) -> int:
    """Coerce a target version to a positive integer or raise ``InvalidVersion``."""

    parsed: int | None = None
    if isinstance(version, bool):
        parsed = None
    elif isinstance(version, int):
        parsed = version
    elif isinstance(version, float) and version.is_integer():
        parsed = int(version)
    elif isinstance(version, str) and version.strip().isdecimal():
        parsed = int(version)

    if parsed is None or parsed < 1:
        label = f"Feature: {entity_id} version" if entity_id is not None else "Feature version"
        raise InvalidVersion(
            f"{label} must be a positive integer, got {version!r}",
            entity_id=entity_id,
        )
    return parsed


def validate_history(
    history: EntityHistory,
    version: object,
    *,
    mode: VersionMode = VersionMode.LENIENT,
) -> tuple[list[VersionRecord], int]:
    """Sort ``history`` and check that ``version`` is its latest, revertible entry.

    Returns the sorted history together with the parsed target version.
    """

    if not history:
        raise EmptyHistory("Feature history cannot be empty")

    ordered = sort_history(history, mode=mode)
    first = ordered[0]
    target = parse_target_version(version, entity_id=first.id)

    if target > len(ordered):
        raise VersionOutOfRange(
            f"Feature: {first.id} version {target} is higher than its history "
            f"({len(ordered)} versions)",
            entity_id=first.id,
        )
    if first.action != Action.CREATE:
        raise MissingCreateAction(
            f"Feature: {first.id} missing initial create action",
            entity_id=first.id,
        )
    if target < len(ordered):
        raise DirtyRevertUnsupported(
            f"Feature: {first.id} has been subsequently edited. reversion not supported",
            entity_id=first.id,
        )
    return ordered, target


def latest_version(history: EntityHistory) -> int | None:
    """Highest explicit version in ``history``, if any record carries one."""

    versions = [record.version for record in history if record.version is not None]
    return max(versions) if versions else None


__all__ = [
    "DEFAULT_MISSING_VERSION",
    "VersionMode",
    "latest_version",
    "parse_target_version",
    "sort_history",
    "unwrap_history",
    "validate_history",
]
