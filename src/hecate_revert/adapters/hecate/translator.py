"""Translate Hecate payloads into domain values."""

from __future__ import annotations

from typing import TYPE_CHECKING

from hecate_revert.domain.model import Delta, DeltaFeature

if TYPE_CHECKING:
    from .schema import DeltaResponse


def translate_delta(delta_id: int, payload: DeltaResponse) -> Delta:
    """Keep the features of a delta in the order the server lists them."""

    return Delta(
        id=payload.id if payload.id is not None else delta_id,
        features=tuple(
            DeltaFeature(id=feature.id, version=feature.version)
            for feature in payload.feature_list
        ),
    )
