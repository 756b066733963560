"""Stream corrective features for every cached history to a text sink."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from hecate_revert.domain.errors import HistoryError
from hecate_revert.domain.history import VersionMode, unwrap_history
from hecate_revert.domain.inverse import inverse

if TYPE_CHECKING:
    from hecate_revert.domain.model import CacheEntry, InverseRecord
    from hecate_revert.domain.ports import CacheStore, TextSink

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReversionFailure:
    entity_id: int
    error: HistoryError


@dataclass(slots=True)
class ReversionResult:
    """Outcome of a reversion pass."""

    written: int = 0
    failures: list[ReversionFailure] = field(default_factory=list["ReversionFailure"])

    @property
    def ok(self) -> bool:
        return not self.failures


def serialize_inverse(record: InverseRecord) -> str:
    """One line of newline-delimited GeoJSON."""

    return json.dumps(record.to_feature()) + "\n"


def invert_entry(entry: CacheEntry, *, mode: VersionMode = VersionMode.LENIENT) -> InverseRecord:
    """Compute the corrective record for one cached history."""

    try:
        history = unwrap_history(entry.history)
        return inverse(history, entry.version, mode=mode)
    except HistoryError as exc:
        if exc.entity_id is None:
            exc.entity_id = entry.id
        raise


def iterate_reversions(
    store: CacheStore,
    sink: TextSink,
    *,
    fail_fast: bool = False,
    mode: VersionMode = VersionMode.LENIENT,
) -> ReversionResult:
    """Write one inverse feature per cached history to ``sink``.

    Entries are read lazily and written one at a time. A history that cannot be
    inverted is logged and skipped unless ``fail_fast`` is set, in which case the
    first error aborts the pass.
    """

    result = ReversionResult()
    for entry in store.scan_all():
        try:
            record = invert_entry(entry, mode=mode)
        except HistoryError as exc:
            if fail_fast:
                raise
            log.warning("Skipping feature %s: %s", entry.id, exc)
            result.failures.append(ReversionFailure(entity_id=entry.id, error=exc))
            continue
        sink.write(serialize_inverse(record))
        result.written += 1

    log.info(
        "Finished reversion: written=%s, skipped=%s",
        result.written,
        len(result.failures),
    )
    return result


__all__ = [
    "ReversionFailure",
    "ReversionResult",
    "invert_entry",
    "iterate_reversions",
    "serialize_inverse",
]
