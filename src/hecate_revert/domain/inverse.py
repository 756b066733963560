"""Inverse calculation for the latest edit of a feature.

Given the full history of a feature, compute the feature that, appended as a new
version, undoes the most recent edit. Reverting v4 of ``[v1, v2, v3, v4]`` yields a
record carrying the properties and geometry of v3 and the inverse of v4's action:

| Reverted action | Inverse |
| --------------- | ------- |
| create          | delete  |
| modify          | modify  |
| delete          | restore |
| restore         | delete  |

Only the latest version can be reverted; anything earlier is a dirty revert.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from hecate_revert.domain.errors import UnsupportedAction
from hecate_revert.domain.history import VersionMode, validate_history
from hecate_revert.domain.model import Action, InverseRecord

if TYPE_CHECKING:
    from hecate_revert.domain.model import EntityHistory

INVERSE_ACTIONS: Final[dict[str, Action]] = {
    Action.MODIFY: Action.MODIFY,
    Action.DELETE: Action.RESTORE,
    Action.RESTORE: Action.DELETE,
}


def inverse(
    history: EntityHistory,
    version: object,
    *,
    mode: VersionMode = VersionMode.LENIENT,
) -> InverseRecord:
    """Return the corrective record that reverts ``version`` of ``history``."""

    ordered, target = validate_history(history, version, mode=mode)

    if len(ordered) == 1:
        created = ordered[0]
        return InverseRecord(
            id=created.id,
            action=Action.DELETE,
            version=1,
            properties=None,
            geometry=None,
        )

    desired = ordered[target - 2]
    latest = ordered[target - 1]

    action = INVERSE_ACTIONS.get(latest.action)
    if action is None:
        raise UnsupportedAction(
            f"Feature: {latest.id} action {latest.action!r} not supported",
            entity_id=latest.id,
        )

    return InverseRecord(
        id=latest.id,
        action=action,
        version=target if latest.version is None else latest.version,
        properties=desired.properties,
        geometry=desired.geometry,
    )
