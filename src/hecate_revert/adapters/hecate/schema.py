"""Pydantic models describing the Hecate delta and feature history payloads."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, TypeAdapter


class HecateBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class DeltaFeaturePayload(HecateBaseModel):
    id: int
    version: int
    action: str | None = None


class DeltaFeatureCollection(HecateBaseModel):
    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: list[DeltaFeaturePayload]


class DeltaResponse(HecateBaseModel):
    """``GET /api/delta/{id}``; ``features`` may also arrive as a bare list."""

    id: int | None = None
    uid: int | None = None
    username: str | None = None
    created: str | None = None
    props: dict[str, Any] | None = None
    features: DeltaFeatureCollection | list[DeltaFeaturePayload]

    @property
    def feature_list(self) -> list[DeltaFeaturePayload]:
        if isinstance(self.features, DeltaFeatureCollection):
            return self.features.features
        return self.features


class HistoryFeature(HecateBaseModel):
    id: int
    version: int | None = None
    action: str
    type: Literal["Feature"] = "Feature"
    properties: dict[str, Any] | None = None
    geometry: dict[str, Any] | None = None


class HistoryEntry(HecateBaseModel):
    """Wrapper around one historical version, ``{"feat": {...}}`` plus metadata."""

    feat: HistoryFeature


HistoryResponse = TypeAdapter(list[HistoryEntry])
