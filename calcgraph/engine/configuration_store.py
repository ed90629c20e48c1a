"""
Configuration Store — Immutable Configuration Records with Audit Trail.

This module creates and edits calculation configurations. Every operation
is pure: it takes a configuration value and returns a new one with exactly
one audit entry appended, leaving the input untouched. Persistence and
concurrent-editor coordination belong to the caller.

Operations:
1. create: assign an ID and record a ``created`` entry
2. update: diff the supplied fields and record an ``updated`` entry
3. change_status: record ``activated`` / ``deactivated`` with a status diff
4. approve: set approval metadata and record a ``validated`` entry
5. export: archival JSON document with the full audit trail

Diffs store old and new values in JSON-compatible form so that any past
field value can be reconstructed by replaying history forward.

Version: config_store_v1
"""

import re
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional, Union
from uuid import uuid4

import structlog
from pydantic_core import to_jsonable_python

from calcgraph.config import get_settings
from calcgraph.errors import ConfigurationNotFoundError
from calcgraph.models.configuration import (
    AuditLogEntry,
    CalculationConfiguration,
    ConfigurationExport,
    ConfigurationInput,
    ConfigurationUpdate,
    ExportedConfiguration,
    FieldChange,
)
from calcgraph.models.enums import AuditAction, CalculationStatus

logger = structlog.get_logger()

CREATION_REASON = "Initial configuration creation"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ConfigurationStore:
    """
    Pure create/update/status/approval operations on configuration records.

    Attributes:
        id_prefix: Prefix for generated configuration IDs
        export_indent: JSON indentation for exported documents
        clock: Callable returning the current UTC time
        logger: Structured logger

    Example:
        >>> store = ConfigurationStore()
        >>> config = store.create(config_input, "u-100", "Dana Reyes")
        >>> updated = store.update(
        ...     config, {"frequency": "daily"}, "u-100", "Dana Reyes", "Switch to daily"
        ... )
        >>> len(updated.audit.history)
        2
    """

    def __init__(
        self,
        id_prefix: Optional[str] = None,
        export_indent: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the configuration store.

        Args:
            id_prefix: Override for ``Settings.config_id_prefix``
            export_indent: Override for ``Settings.export_indent``
            clock: Time source (defaults to ``datetime.now(timezone.utc)``)
        """
        settings = get_settings()
        self.id_prefix = id_prefix or settings.config_id_prefix
        self.export_indent = settings.export_indent if export_indent is None else export_indent
        self.clock = clock or utc_now
        self.logger = structlog.get_logger()

    # =========================================================================
    # Lifecycle operations
    # =========================================================================

    def create(
        self,
        config_input: Union[ConfigurationInput, dict],
        author_id: str,
        author_name: str,
    ) -> CalculationConfiguration:
        """
        Create a new configuration with a fresh ID and a ``created`` audit entry.

        Args:
            config_input: Configuration fields (model or dict)
            author_id: ID of the creating user
            author_name: Display name of the creating user

        Returns:
            New CalculationConfiguration

        Raises:
            pydantic.ValidationError: If the input fields are invalid
        """
        data = ConfigurationInput.model_validate(config_input)
        now = self.clock()

        entry = AuditLogEntry(
            timestamp=now,
            action=AuditAction.CREATED,
            author_id=author_id,
            author_name=author_name,
            reason=CREATION_REASON,
        )
        config = CalculationConfiguration(
            id=self.generate_id(data.name),
            audit={
                "created_at": now,
                "created_by": author_id,
                "created_by_name": author_name,
                "last_modified_at": now,
                "last_modified_by": author_id,
                "last_modified_by_name": author_name,
                "history": [entry],
            },
            **dict(data.model_copy(deep=True)),
        )

        self.logger.info(
            "configuration_created",
            configuration_id=config.id,
            formula_id=config.formula_id,
            author_id=author_id,
        )
        return config

    def update(
        self,
        config: CalculationConfiguration,
        updates: Union[ConfigurationUpdate, dict],
        author_id: str,
        author_name: str,
        reason: str,
    ) -> CalculationConfiguration:
        """
        Apply a partial update and append an ``updated`` audit entry.

        Only the fields explicitly supplied are compared against the current
        record; each one whose value differs contributes a diff entry. An
        update that changes nothing still appends an entry with an empty diff.

        Args:
            config: Current configuration (not modified)
            updates: Fields to change (model or dict)
            author_id: ID of the editing user
            author_name: Display name of the editing user
            reason: Justification recorded in the audit entry

        Returns:
            New CalculationConfiguration with the update applied

        Raises:
            pydantic.ValidationError: If an update field is unknown or invalid
        """
        update = ConfigurationUpdate.model_validate(updates)
        now = self.clock()

        new_values: dict[str, Any] = {}
        changes: dict[str, FieldChange] = {}
        for field_name in ConfigurationUpdate.model_fields:
            if field_name not in update.model_fields_set:
                continue
            new_value = getattr(update, field_name)
            new_values[field_name] = new_value

            old_json = to_jsonable_python(getattr(config, field_name))
            new_json = to_jsonable_python(new_value)
            if old_json != new_json:
                changes[field_name] = FieldChange(old=old_json, new=new_json)

        entry = AuditLogEntry(
            timestamp=now,
            action=AuditAction.UPDATED,
            author_id=author_id,
            author_name=author_name,
            changes=changes,
            reason=reason,
        )
        updated = self._append_entry(config, entry, **new_values)

        self.logger.info(
            "configuration_updated",
            configuration_id=config.id,
            changed_fields=sorted(changes),
            author_id=author_id,
        )
        return updated

    def change_status(
        self,
        config: CalculationConfiguration,
        new_status: Union[CalculationStatus, str],
        author_id: str,
        author_name: str,
        reason: str,
    ) -> CalculationConfiguration:
        """
        Change lifecycle status, recording ``activated`` or ``deactivated``.

        Args:
            config: Current configuration (not modified)
            new_status: Target status
            author_id: ID of the acting user
            author_name: Display name of the acting user
            reason: Justification recorded in the audit entry

        Returns:
            New CalculationConfiguration with the new status
        """
        status = CalculationStatus(new_status)
        now = self.clock()
        action = AuditAction.ACTIVATED if status == CalculationStatus.ACTIVE else AuditAction.DEACTIVATED

        entry = AuditLogEntry(
            timestamp=now,
            action=action,
            author_id=author_id,
            author_name=author_name,
            changes={"status": FieldChange(old=config.status.value, new=status.value)},
            reason=reason,
        )
        updated = self._append_entry(config, entry, status=status)

        self.logger.info(
            "configuration_status_changed",
            configuration_id=config.id,
            old_status=config.status.value,
            new_status=status.value,
            action=action.value,
        )
        return updated

    def approve(
        self,
        config: CalculationConfiguration,
        approver_id: str,
        approver_name: str,
        comment: str,
    ) -> CalculationConfiguration:
        """
        Record approval metadata and a ``validated`` audit entry.

        Args:
            config: Current configuration (not modified)
            approver_id: ID of the approver
            approver_name: Display name of the approver
            comment: Approval comment, embedded in the entry reason

        Returns:
            New CalculationConfiguration carrying the approval
        """
        now = self.clock()
        entry = AuditLogEntry(
            timestamp=now,
            action=AuditAction.VALIDATED,
            author_id=approver_id,
            author_name=approver_name,
            reason=f"Configuration approved: {comment}",
        )
        audit = config.audit.model_copy(
            update={
                "approved_at": now,
                "approved_by": approver_id,
                "approved_by_name": approver_name,
                "approval_comment": comment,
                "history": [*config.audit.history, entry],
            }
        )

        self.logger.info(
            "configuration_approved",
            configuration_id=config.id,
            approver_id=approver_id,
        )
        return config.model_copy(update={"audit": audit}).model_copy(deep=True)

    def _append_entry(
        self,
        config: CalculationConfiguration,
        entry: AuditLogEntry,
        **field_values: Any,
    ) -> CalculationConfiguration:
        audit = config.audit.model_copy(
            update={
                "last_modified_at": entry.timestamp,
                "last_modified_by": entry.author_id,
                "last_modified_by_name": entry.author_name,
                "history": [*config.audit.history, entry],
            }
        )
        # The new record shares no mutable container with its input.
        return config.model_copy(update={**field_values, "audit": audit}).model_copy(deep=True)

    # =========================================================================
    # Lookup and identity
    # =========================================================================

    def get(
        self, configs: Iterable[CalculationConfiguration], configuration_id: str
    ) -> CalculationConfiguration:
        """
        Find a configuration by ID in a working set.

        Raises:
            ConfigurationNotFoundError: If no configuration has the ID
        """
        for config in configs:
            if config.id == configuration_id:
                return config
        raise ConfigurationNotFoundError(configuration_id)

    def generate_id(self, name: str) -> str:
        """
        Generate a collision-resistant configuration ID from a display name.

        Example:
            >>> store.generate_id("Unit 1 Heat Input")
            'calc-unit-1-heat-input-3f9c2a81d04e'
        """
        slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "config"
        return f"{self.id_prefix}-{slug}-{uuid4().hex[:12]}"

    # =========================================================================
    # Export
    # =========================================================================

    def export(self, config: CalculationConfiguration) -> str:
        """
        Export a configuration with its complete audit trail as JSON.

        Intended for archival and compliance records, not for re-import.

        Args:
            config: Configuration to export

        Returns:
            JSON document with ``configuration``, ``audit`` and ``exported_at``
        """
        document = ConfigurationExport(
            configuration=ExportedConfiguration(
                **{name: getattr(config, name) for name in ExportedConfiguration.model_fields}
            ),
            audit=config.audit,
            exported_at=self.clock(),
        )

        self.logger.info(
            "configuration_exported",
            configuration_id=config.id,
            history_length=len(config.audit.history),
        )
        return document.model_dump_json(indent=self.export_indent or None)

    def parse_export(self, document: Union[str, bytes]) -> ConfigurationExport:
        """Parse an exported document for verification."""
        return ConfigurationExport.model_validate_json(document)


def describe_changes(
    config: CalculationConfiguration, proposed: ConfigurationUpdate
) -> str:
    """
    Summarize a proposed change in human-readable form.

    Args:
        config: Current configuration
        proposed: Proposed field values

    Returns:
        Semicolon-separated change summary, e.g.
        ``"Formula: so2-mass-emission → appendix-d-so2-mass; Frequency: hourly → daily"``
    """
    fields = proposed.model_fields_set
    descriptions = []

    if "formula_id" in fields:
        descriptions.append(f"Formula: {config.formula_id} → {proposed.formula_id}")
    if "formula_version" in fields:
        descriptions.append(
            f"Formula version: {config.formula_version} → {proposed.formula_version}"
        )
    if "status" in fields and proposed.status is not None:
        descriptions.append(f"Status: {config.status.value} → {proposed.status.value}")
    if "frequency" in fields and proposed.frequency is not None:
        descriptions.append(f"Frequency: {config.frequency.value} → {proposed.frequency.value}")
    if "parameter_mappings" in fields:
        descriptions.append("Parameter mappings updated")
    if "validation_rule_ids" in fields:
        descriptions.append("Validation rules updated")
    if "programs" in fields:
        descriptions.append("Programs updated")

    return "; ".join(descriptions) or "No changes proposed"
