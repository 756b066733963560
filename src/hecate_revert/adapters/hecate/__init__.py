"""Hecate server adapter."""

from __future__ import annotations

from .client import HecateAPIError, HecateClient
from .schema import DeltaResponse, HistoryEntry
from .translator import translate_delta

__all__ = [
    "DeltaResponse",
    "HecateAPIError",
    "HecateClient",
    "HistoryEntry",
    "translate_delta",
]
