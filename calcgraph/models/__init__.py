"""
Pydantic v2 data models for the calculation graph engine.

Model Organization:
    - enums: Enumeration types for consistent classification
    - configuration: Calculation configurations, parameter sources, audit trail
    - graph: Dependency graph nodes, edges and validation results
    - impact: Change impact analysis reports
    - formula: Formula registry reference data

Usage:
    >>> from calcgraph.models import ConfigurationInput
    >>> config_input = ConfigurationInput(
    ...     name="Unit 1 NOx Rate",
    ...     formula_id="nox-emission-rate",
    ...     parameter_mappings={"HI": "calc:unit-1-heat-input:output"},
    ... )
"""

from .configuration import (
    AuditLogEntry,
    AuditTrail,
    CalculationConfiguration,
    ConfigurationExport,
    ConfigurationInput,
    ConfigurationMetadata,
    ConfigurationOutput,
    ConfigurationUpdate,
    ConstantSource,
    ExportedConfiguration,
    ExternalSource,
    FieldChange,
    FieldHistoryEntry,
    ParameterSource,
    parse_parameter_source,
)
from .enums import (
    AuditAction,
    CalculationFrequency,
    CalculationStatus,
    DependencyType,
    ImpactSeverity,
    ImpactType,
    ParameterType,
    RiskLevel,
)
from .formula import Formula, FormulaCategory, FormulaParameter, ParameterRange
from .graph import (
    CalculationDependency,
    DependencyGraph,
    DependencyNode,
    GraphValidationResult,
    NodeMetadata,
)
from .impact import ImpactAnalysis, ImpactedCalculation

__all__ = [
    # Enums
    "AuditAction",
    "CalculationFrequency",
    "CalculationStatus",
    "DependencyType",
    "ImpactSeverity",
    "ImpactType",
    "ParameterType",
    "RiskLevel",
    # Configuration
    "AuditLogEntry",
    "AuditTrail",
    "CalculationConfiguration",
    "ConfigurationExport",
    "ConfigurationInput",
    "ConfigurationMetadata",
    "ConfigurationOutput",
    "ConfigurationUpdate",
    "ConstantSource",
    "ExportedConfiguration",
    "ExternalSource",
    "FieldChange",
    "FieldHistoryEntry",
    "ParameterSource",
    "parse_parameter_source",
    # Graph
    "CalculationDependency",
    "DependencyGraph",
    "DependencyNode",
    "GraphValidationResult",
    "NodeMetadata",
    # Impact
    "ImpactAnalysis",
    "ImpactedCalculation",
    # Formula
    "Formula",
    "FormulaCategory",
    "FormulaParameter",
    "ParameterRange",
]
