"""Feature history records, corrective records and cache rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final, Literal, TypeAlias

from hecate_revert.domain.errors import InvalidHistory

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

Properties: TypeAlias = dict[str, Any]
Geometry: TypeAlias = dict[str, Any]
WrappedHistory: TypeAlias = list[dict[str, Any]]

FEATURE_TYPE: Final[Literal["Feature"]] = "Feature"


class Action(StrEnum):
    CREATE = "create"
    MODIFY = "modify"
    DELETE = "delete"
    RESTORE = "restore"


@dataclass(frozen=True, slots=True, kw_only=True)
class VersionRecord:
    """One historical edit of one feature."""

    id: int
    version: int | None
    action: str
    properties: Properties | None = None
    geometry: Geometry | None = None

    @classmethod
    def from_feature(cls, feature: Mapping[str, Any]) -> VersionRecord:
        """Build a record from a GeoJSON feature as returned by the history endpoint."""

        feature_id = feature.get("id")
        if isinstance(feature_id, bool) or not isinstance(feature_id, int):
            raise InvalidHistory(f"Feature history entry has no integer id: {feature_id!r}")
        return cls(
            id=feature_id,
            version=_coerce_version(feature.get("version"), entity_id=feature_id),
            action=str(feature.get("action", "")),
            properties=feature.get("properties"),
            geometry=feature.get("geometry"),
        )


def _coerce_version(value: object, *, entity_id: int) -> int | None:
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value)
    raise InvalidHistory(
        f"Feature: {entity_id} has a non-integer version {value!r}",
        entity_id=entity_id,
    )


EntityHistory: TypeAlias = "Sequence[VersionRecord]"


@dataclass(frozen=True, slots=True, kw_only=True)
class InverseRecord:
    """Corrective feature that undoes the latest edit when appended to the history.

    ``version`` is the version being reverted; numbering the appended edit is left
    to whoever uploads the record.
    """

    id: int
    action: Action
    version: int
    properties: Properties | None
    geometry: Geometry | None
    type: Literal["Feature"] = FEATURE_TYPE

    def to_feature(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "action": self.action.value,
            "version": self.version,
            "properties": self.properties,
            "geometry": self.geometry,
        }


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Cached history of a feature, keyed by feature id."""

    id: int
    version: int
    history: WrappedHistory


@dataclass(frozen=True, slots=True)
class DeltaFeature:
    """A feature touched by a delta, with the version the delta produced."""

    id: int
    version: int


@dataclass(frozen=True, slots=True)
class Delta:
    """A numbered batch of feature edits."""

    id: int
    features: tuple[DeltaFeature, ...] = field(default_factory=tuple)


__all__ = [
    "FEATURE_TYPE",
    "Action",
    "CacheEntry",
    "Delta",
    "DeltaFeature",
    "EntityHistory",
    "Geometry",
    "InverseRecord",
    "Properties",
    "VersionRecord",
    "WrappedHistory",
]
