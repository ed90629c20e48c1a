"""
Calculation dependency graph and change-impact engine.

This package contains the core analytical components:

- Configuration store: immutable create/update/status/approval with audit trail
- Audit log: field history and point-in-time reconstruction from diffs
- Graph builder: configurations -> dependency graph (levels, order, cycles)
- Graph analyzer: closures, path finding, critical path, validation
- Impact analyzer: blast radius and risk of a proposed change
- Formula registry: read-only formula reference data

All components are synchronous and side-effect free with respect to shared
state: callers pass the full working set on every call.
"""

__version__ = "1.0.0"

from calcgraph.engine.audit_log import (
    get_audit_entries_by_action,
    get_audit_history,
    get_field_history,
    get_field_value_at,
)
from calcgraph.engine.configuration_store import ConfigurationStore, describe_changes
from calcgraph.engine.formula_registry import FormulaRegistry, create_standard_registry
from calcgraph.engine.graph import (
    DependencyGraphAnalyzer,
    DependencyGraphBuilder,
    build_dependency_graph,
    to_networkx,
)
from calcgraph.engine.impact import ChangeRiskScorer, ImpactAnalyzer

__all__ = [
    "ChangeRiskScorer",
    "ConfigurationStore",
    "DependencyGraphAnalyzer",
    "DependencyGraphBuilder",
    "FormulaRegistry",
    "ImpactAnalyzer",
    "build_dependency_graph",
    "create_standard_registry",
    "describe_changes",
    "get_audit_entries_by_action",
    "get_audit_history",
    "get_field_history",
    "get_field_value_at",
    "to_networkx",
]
