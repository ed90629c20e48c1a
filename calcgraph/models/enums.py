"""
Enumeration types for the calculation graph engine.

All enums inherit from str to ensure JSON serialization compatibility.
"""

from enum import Enum


class CalculationFrequency(str, Enum):
    """How often a calculation configuration is executed."""

    CONTINUOUS = "continuous"
    HOURLY = "hourly"
    DAILY = "daily"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ON_DEMAND = "on-demand"


class CalculationStatus(str, Enum):
    """
    Lifecycle status of a calculation configuration.

    Configurations are never deleted; they are retired by moving them to
    INACTIVE or DEPRECATED.
    """

    ACTIVE = "active"
    INACTIVE = "inactive"
    DEPRECATED = "deprecated"
    TESTING = "testing"


class AuditAction(str, Enum):
    """Action recorded by an audit log entry."""

    CREATED = "created"
    UPDATED = "updated"
    ACTIVATED = "activated"
    DEACTIVATED = "deactivated"
    VALIDATED = "validated"


class DependencyType(str, Enum):
    """Kind of data flowing along a dependency edge."""

    OUTPUT = "output"


class ImpactType(str, Enum):
    """Classification of how a calculation is affected by a change."""

    FORMULA_CHANGE = "formula-change"
    PARAMETER_CHANGE = "parameter-change"
    DEPENDENCY_CHANGE = "dependency-change"


class ImpactSeverity(str, Enum):
    """Severity of a single impacted calculation."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskLevel(str, Enum):
    """
    Overall risk of a proposed configuration change.

    Determines which recommendations and approvals are required before the
    change is applied.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ParameterType(str, Enum):
    """Data type of a formula parameter."""

    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
