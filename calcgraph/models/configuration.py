"""
Calculation configuration models.

This module defines the versioned calculation configuration record, the
tagged parameter-source type that encodes cross-references between
configurations, and the append-only audit trail attached to every record.

Configurations are immutable values: the configuration store returns a new
record for every edit and never mutates one in place.
"""

import math
import re
from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
    model_validator,
)

from .enums import AuditAction, CalculationFrequency, CalculationStatus

CONFIGURATION_REFERENCE_PREFIX = "calc:"
CONFIGURATION_REFERENCE_SUFFIX = ":output"

# Plain decimal literals only: no underscores, NaN or infinity spellings.
_INTEGER_LITERAL = re.compile(r"[+-]?\d+", re.ASCII)
_DECIMAL_LITERAL = re.compile(r"[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?", re.ASCII)


# =============================================================================
# Parameter sources
# =============================================================================


class ConstantSource(BaseModel):
    """A parameter slot bound to a literal value."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["constant"] = "constant"
    value: Union[bool, int, float, str] = Field(description="Literal parameter value")

    @field_validator("value")
    @classmethod
    def validate_finite(cls, v):
        """NaN and infinities do not survive JSON export or compare equal to themselves."""
        if isinstance(v, float) and not math.isfinite(v):
            raise ValueError(f"Constant parameter value must be finite, got {v!r}")
        return v

    def encode(self) -> str:
        return str(self.value)


class ExternalSource(BaseModel):
    """A parameter slot bound to a named external data source (e.g. a monitor channel)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["external"] = "external"
    name: str = Field(description="External data source name")

    def encode(self) -> str:
        return self.name


class ConfigurationOutput(BaseModel):
    """
    A parameter slot bound to the output of another calculation configuration.

    This is the only source kind that can create a dependency edge. The edge
    exists only when the referenced configuration is part of the working set;
    otherwise the reference is treated as an unresolved external source.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["configuration_output"] = "configuration_output"
    configuration_id: str = Field(min_length=1, description="Referenced configuration ID")

    def encode(self) -> str:
        return f"{CONFIGURATION_REFERENCE_PREFIX}{self.configuration_id}{CONFIGURATION_REFERENCE_SUFFIX}"


ParameterSource = Annotated[
    Union[ConstantSource, ExternalSource, ConfigurationOutput],
    Field(discriminator="kind"),
]

_parameter_source_adapter = TypeAdapter(ParameterSource)


def parse_parameter_source(raw: Any) -> Union[ConstantSource, ExternalSource, ConfigurationOutput]:
    """
    Parse a raw parameter-mapping value into a tagged parameter source.

    Recognized encodings:
        - ``"calc:<id>:output"`` or ``"calc:<id>"``: ConfigurationOutput;
          everything between the prefix and an optional trailing ``:output``
          is the ID, so ``"calc:a:b:output"`` references ``"a:b"``
        - finite numbers, booleans and plain decimal strings: ConstantSource
        - any other string (including "NaN", "inf" and "1_000"): ExternalSource
        - dicts carrying a ``kind`` key: validated as the tagged union

    Args:
        raw: Raw mapping value

    Returns:
        Parsed parameter source

    Example:
        >>> parse_parameter_source("calc:heat-input:output")
        ConfigurationOutput(kind='configuration_output', configuration_id='heat-input')
        >>> parse_parameter_source("stack_flow_monitor").kind
        'external'
    """
    if isinstance(raw, (ConstantSource, ExternalSource, ConfigurationOutput)):
        return raw
    if isinstance(raw, dict):
        return _parameter_source_adapter.validate_python(raw)
    if isinstance(raw, float) and not math.isfinite(raw):
        raise ValueError(f"Constant parameter value must be finite, got {raw!r}")
    if isinstance(raw, (bool, int, float)):
        return ConstantSource(value=raw)
    if not isinstance(raw, str):
        raise ValueError(f"Unsupported parameter source: {raw!r}")

    text = raw.strip()
    if text.startswith(CONFIGURATION_REFERENCE_PREFIX):
        reference = text[len(CONFIGURATION_REFERENCE_PREFIX):]
        if reference.endswith(CONFIGURATION_REFERENCE_SUFFIX):
            reference = reference[: -len(CONFIGURATION_REFERENCE_SUFFIX)]
        if reference:
            return ConfigurationOutput(configuration_id=reference)

    number = _parse_number(text)
    if number is not None:
        return ConstantSource(value=number)

    return ExternalSource(name=text)


def _parse_number(text: str) -> Optional[Union[int, float]]:
    if _INTEGER_LITERAL.fullmatch(text):
        return int(text)
    if _DECIMAL_LITERAL.fullmatch(text):
        number = float(text)
        if math.isfinite(number):
            return number
    return None


def _coerce_parameter_mapping(value: Any) -> Any:
    if isinstance(value, dict):
        return {slot: parse_parameter_source(source) for slot, source in value.items()}
    return value


ParameterMapping = Annotated[
    dict[str, ParameterSource],
    BeforeValidator(_coerce_parameter_mapping),
]


# =============================================================================
# Audit trail
# =============================================================================


class FieldChange(BaseModel):
    """Old and new value of a single field, in JSON-compatible form."""

    model_config = ConfigDict(frozen=True)

    old: Any = Field(default=None, description="Value before the change")
    new: Any = Field(default=None, description="Value after the change")


class AuditLogEntry(BaseModel):
    """
    One immutable entry in a configuration's audit history.

    Attributes:
        timestamp: When the action happened (UTC)
        action: What happened
        author_id: ID of the user or system performing the action
        author_name: Display name of the author
        changes: Per-field diff keyed by field name (None for non-edit actions)
        reason: Free-text justification
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(description="When the action happened (UTC)")
    action: AuditAction = Field(description="Action performed")
    author_id: str = Field(description="ID of the author")
    author_name: str = Field(description="Display name of the author")
    changes: Optional[dict[str, FieldChange]] = Field(
        default=None, description="Per-field diff keyed by field name"
    )
    reason: Optional[str] = Field(default=None, description="Reason for the action")


class AuditTrail(BaseModel):
    """Creation, modification and approval metadata plus the ordered history."""

    model_config = ConfigDict(frozen=True)

    created_at: datetime
    created_by: str
    created_by_name: str
    last_modified_at: datetime
    last_modified_by: str
    last_modified_by_name: str
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    approved_by_name: Optional[str] = None
    approval_comment: Optional[str] = None
    history: list[AuditLogEntry] = Field(default_factory=list)


class FieldHistoryEntry(BaseModel):
    """One recorded change of a single field, as returned by field history queries."""

    timestamp: datetime
    old_value: Any = None
    new_value: Any = None
    author_id: str
    author_name: str


# =============================================================================
# Configuration records
# =============================================================================


class ConfigurationMetadata(BaseModel):
    """Free-form descriptive metadata. Unknown keys are preserved."""

    model_config = ConfigDict(frozen=True, extra="allow")

    description: str = ""
    notes: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class ConfigurationInput(BaseModel):
    """
    Fields supplied by a caller when creating a configuration.

    Identity and audit metadata are assigned by the configuration store.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, description="Display name")
    formula_id: str = Field(min_length=1, description="Formula definition ID")
    formula_version: str = Field(default="1.0.0", description="Formula definition version")
    frequency: CalculationFrequency = Field(default=CalculationFrequency.HOURLY)
    parameter_mappings: ParameterMapping = Field(default_factory=dict)
    status: CalculationStatus = Field(default=CalculationStatus.TESTING)
    location_id: Optional[str] = Field(default=None, description="Monitoring location / unit")
    programs: list[str] = Field(default_factory=list, description="Regulatory program tags")
    satisfies_requirements: list[str] = Field(default_factory=list)
    validation_rule_ids: list[str] = Field(default_factory=list)
    metadata: ConfigurationMetadata = Field(default_factory=ConfigurationMetadata)


class ConfigurationUpdate(BaseModel):
    """
    Partial set of editable fields for an update or a proposed change.

    Only the fields explicitly set by the caller take part in diffing.
    """

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    formula_id: Optional[str] = None
    formula_version: Optional[str] = None
    frequency: Optional[CalculationFrequency] = None
    parameter_mappings: Optional[ParameterMapping] = None
    status: Optional[CalculationStatus] = None
    location_id: Optional[str] = None
    programs: Optional[list[str]] = None
    satisfies_requirements: Optional[list[str]] = None
    validation_rule_ids: Optional[list[str]] = None
    metadata: Optional[ConfigurationMetadata] = None

    @model_validator(mode="after")
    def validate_required_fields_not_null(self) -> "ConfigurationUpdate":
        """Only location_id may be explicitly cleared."""
        for field_name in self.model_fields_set - {"location_id"}:
            if getattr(self, field_name) is None:
                raise ValueError(f"{field_name} cannot be set to null")
        return self

    def is_formula_change(self, config: "CalculationConfiguration") -> bool:
        """True when the formula reference (ID or version) differs from the configuration's."""
        return (
            "formula_id" in self.model_fields_set and self.formula_id != config.formula_id
        ) or (
            "formula_version" in self.model_fields_set
            and self.formula_version != config.formula_version
        )

    def is_parameter_change(self, config: "CalculationConfiguration") -> bool:
        """True when the parameter mapping differs from the configuration's."""
        return (
            "parameter_mappings" in self.model_fields_set
            and self.parameter_mappings != config.parameter_mappings
        )


class CalculationConfiguration(ConfigurationInput):
    """
    A versioned calculation configuration with its audit trail.

    Attributes:
        id: Unique configuration identifier
        name: Display name
        formula_id: Formula definition ID
        formula_version: Formula definition version
        frequency: Execution frequency
        parameter_mappings: Formula parameter slot -> tagged data source
        status: Lifecycle status
        location_id: Optional monitoring location the calculation applies to
        programs: Regulatory programs the calculation supports
        satisfies_requirements: Requirement IDs satisfied by the calculation
        validation_rule_ids: Validation rules applied to results
        metadata: Free-form descriptive metadata
        audit: Append-only audit trail
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1, description="Unique configuration identifier")
    audit: AuditTrail = Field(description="Append-only audit trail")

    def referenced_configuration_ids(self) -> list[tuple[str, str]]:
        """Return ``(slot, configuration_id)`` pairs for every configuration-output slot."""
        return [
            (slot, source.configuration_id)
            for slot, source in self.parameter_mappings.items()
            if isinstance(source, ConfigurationOutput)
        ]


class ExportedConfiguration(ConfigurationInput):
    """Configuration fields carried in an export document."""

    model_config = ConfigDict(extra="forbid")

    id: str


class ConfigurationExport(BaseModel):
    """Archival export document: configuration fields, audit trail, export timestamp."""

    configuration: ExportedConfiguration
    audit: AuditTrail
    exported_at: datetime
