"""SQLAlchemy table metadata for the reversion cache."""

from __future__ import annotations

import json
from typing import Any

from sqlalchemy import Column, Dialect, Integer, MetaData, Table, Text, TypeDecorator

metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "pk": "pk_%(table_name)s",
    }
)


class JsonDocument(TypeDecorator[list[dict[str, Any]]]):
    """Serialised feature history stored as JSON text."""

    impl = Text
    cache_ok = True

    def process_bind_param(
        self, value: list[dict[str, Any]] | None, dialect: Dialect
    ) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(value, separators=(",", ":"))

    def process_result_value(
        self, value: str | None, dialect: Dialect
    ) -> list[dict[str, Any]] | None:
        _ = dialect
        if value is None:
            return None
        return json.loads(value)


features_table = Table(
    "features",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("version", Integer, nullable=False),
    Column("history", JsonDocument, nullable=False),
)
