"""
Audit log queries over a configuration's append-only history.

History is never snapshotted: per-field diffs are the only record of past
values, so field history and point-in-time values are both derived by
scanning the entries in order.
"""

from datetime import datetime
from typing import Any, Union

import structlog
from pydantic_core import to_jsonable_python

from calcgraph.models.configuration import (
    AuditLogEntry,
    CalculationConfiguration,
    FieldHistoryEntry,
)
from calcgraph.models.enums import AuditAction

logger = structlog.get_logger()


def get_audit_history(config: CalculationConfiguration) -> list[AuditLogEntry]:
    """Return a copy of the configuration's ordered audit history."""
    return list(config.audit.history)


def get_audit_entries_by_action(
    config: CalculationConfiguration, action: Union[AuditAction, str]
) -> list[AuditLogEntry]:
    """Return the history entries recording the given action."""
    wanted = AuditAction(action)
    return [entry for entry in config.audit.history if entry.action == wanted]


def get_field_history(
    config: CalculationConfiguration, field_name: str
) -> list[FieldHistoryEntry]:
    """
    Get every recorded change to a single field, oldest first.

    Built solely from history entries whose diff contains the field; a field
    that was never changed yields an empty list.

    Args:
        config: Configuration to inspect
        field_name: Configuration field name, e.g. ``"formula_id"``

    Returns:
        Ordered field changes with timestamp, old/new value and author

    Example:
        >>> [h.new_value for h in get_field_history(config, "frequency")]
        ['daily', 'quarterly']
    """
    history = []
    for entry in config.audit.history:
        if not entry.changes or field_name not in entry.changes:
            continue
        change = entry.changes[field_name]
        history.append(
            FieldHistoryEntry(
                timestamp=entry.timestamp,
                old_value=change.old,
                new_value=change.new,
                author_id=entry.author_id,
                author_name=entry.author_name,
            )
        )
    return history


def get_field_value_at(
    config: CalculationConfiguration, field_name: str, at: datetime
) -> Any:
    """
    Reconstruct the value a field held at a past instant.

    Replays the field's diffs forward: the value is the ``new`` side of the
    last change at or before ``at``. When every change happened after
    ``at`` the ``old`` side of the first change is returned, and a field that
    was never changed has held its current value throughout.

    Args:
        config: Configuration to inspect
        field_name: Configuration field name
        at: Point in time (timezone-aware, comparable with audit timestamps)

    Returns:
        JSON-compatible field value

    Raises:
        AttributeError: If the configuration has no such field
    """
    current = to_jsonable_python(getattr(config, field_name))
    changes = get_field_history(config, field_name)
    if not changes:
        return current

    value = changes[0].old_value
    for change in changes:
        if change.timestamp > at:
            break
        value = change.new_value

    logger.debug(
        "field_value_reconstructed",
        configuration_id=config.id,
        field_name=field_name,
        change_count=len(changes),
    )
    return value
